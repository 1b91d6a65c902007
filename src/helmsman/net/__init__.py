from __future__ import annotations

from .protocol import (
    CONTROL_TAG,
    ECHO_TAG,
    ENTITY_TAG,
    PROBE_MESSAGE,
    EchoReply,
    EntityState,
    decode_control,
    decode_echo_reply,
    decode_entity_update,
    encode_control,
    local_motion_update,
)
from .connection import Connection, RecordingTransport
from .latency import LatencyEstimator

__all__ = [
    "CONTROL_TAG",
    "Connection",
    "ECHO_TAG",
    "ENTITY_TAG",
    "EchoReply",
    "EntityState",
    "LatencyEstimator",
    "PROBE_MESSAGE",
    "RecordingTransport",
    "decode_control",
    "decode_echo_reply",
    "decode_entity_update",
    "encode_control",
    "local_motion_update",
]
