from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from ..debug_log import trace_log
from .protocol import frame_tag

MessageHandler = Callable[[str], None]
RawSend = Callable[[str], None]


@dataclass(slots=True)
class Connection:
    """Text-frame server link with observable sends.

    The underlying socket belongs to the host application: it hands us a raw
    `send` callable and feeds every received frame to `deliver()`. Components
    register as send observers (notified after each outbound frame) or message
    listeners instead of patching the send path.
    """

    raw_send: RawSend | None
    _send_observers: list[MessageHandler] = field(default_factory=list)
    _listeners: list[MessageHandler] = field(default_factory=list)

    @property
    def open(self) -> bool:
        return self.raw_send is not None

    def close(self) -> None:
        self.raw_send = None

    def send(self, message: str) -> None:
        raw_send = self.raw_send
        if raw_send is None:
            raise RuntimeError("connection is closed")
        raw_send(str(message))
        for observer in list(self._send_observers):
            observer(str(message))

    def deliver(self, message: str) -> None:
        for listener in list(self._listeners):
            listener(str(message))

    def add_send_observer(self, observer: MessageHandler) -> None:
        if observer in self._send_observers:
            return
        self._send_observers.append(observer)

    def remove_send_observer(self, observer: MessageHandler) -> None:
        if observer in self._send_observers:
            self._send_observers.remove(observer)

    def add_listener(self, listener: MessageHandler) -> None:
        if listener in self._listeners:
            return
        self._listeners.append(listener)

    def remove_listener(self, listener: MessageHandler) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def observer_count(self) -> int:
        return len(self._send_observers)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


@dataclass(slots=True)
class RecordingTransport:
    """Raw send sink that keeps every frame; used for replays and tests."""

    sent: list[str] = field(default_factory=list)

    def __call__(self, message: str) -> None:
        self.sent.append(str(message))
        trace_log("net_send", tag=frame_tag(message))

    def frames(self, tag: str) -> list[str]:
        return [message for message in self.sent if frame_tag(message) == tag]


__all__ = ["Connection", "MessageHandler", "RawSend", "RecordingTransport"]
