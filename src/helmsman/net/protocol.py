"""Text frames exchanged with the game server.

Every frame is a short type tag followed by a payload:

  - ``e:{"<id>": {"x": .., "y": .., "vx": .., "vy": .., ...}, ...}`` entity updates
  - ``a:{"x": .., "y": ..}`` echo replies
  - ``ks:<int>`` control-state commands (outbound)
  - ``ahoy!`` echo probe (outbound, fixed literal)
"""

from __future__ import annotations

import math

import msgspec

ENTITY_TAG = "e:"
ECHO_TAG = "a:"
CONTROL_TAG = "ks:"
PROBE_MESSAGE = "ahoy!"


class EntityState(msgspec.Struct):
    x: float | None = None
    y: float | None = None
    vx: float | None = None
    vy: float | None = None


class EchoReply(msgspec.Struct):
    x: float
    y: float


# Servers are loose about numeric types (numbers may arrive as strings).
_ENTITY_TABLE_DECODER = msgspec.json.Decoder(dict[str, msgspec.Raw])
_ENTITY_DECODER = msgspec.json.Decoder(EntityState, strict=False)
_ECHO_DECODER = msgspec.json.Decoder(EchoReply, strict=False)


def _finite(*values: float | None) -> bool:
    return all(value is None or math.isfinite(value) for value in values)


def frame_tag(message: str) -> str:
    """Return the type tag of `message` (up to and including the first colon)."""
    head, sep, _ = str(message).partition(":")
    if not sep:
        return str(message)
    return head + sep


def decode_entity_update(message: str, entity_id: str) -> EntityState | None:
    """Decode one entity's entry from an update frame, leaving the others undecoded."""
    if not message.startswith(ENTITY_TAG):
        return None
    try:
        table = _ENTITY_TABLE_DECODER.decode(message[len(ENTITY_TAG) :])
        raw = table.get(str(entity_id))
        if raw is None:
            return None
        state = _ENTITY_DECODER.decode(raw)
    except msgspec.DecodeError:
        return None
    # Lax decoding lets "nan" and "inf" strings through as floats.
    if not _finite(state.x, state.y, state.vx, state.vy):
        return None
    return state


def local_motion_update(message: str, entity_id: str) -> EntityState | None:
    """Return the local entity's state if `message` is a velocity-bearing update for it.

    Updates without both `vx` and `vy` for the local entity are partial tick
    fragments and are ignored.
    """
    state = decode_entity_update(message, entity_id)
    if state is None or state.vx is None or state.vy is None:
        return None
    return state


def decode_echo_reply(message: str) -> EchoReply | None:
    if not message.startswith(ECHO_TAG):
        return None
    try:
        reply = _ECHO_DECODER.decode(message[len(ECHO_TAG) :])
    except msgspec.DecodeError:
        return None
    if not _finite(reply.x, reply.y):
        return None
    return reply


def encode_control(bitmask: int) -> str:
    return f"{CONTROL_TAG}{int(bitmask)}"


def decode_control(message: str) -> int | None:
    if not message.startswith(CONTROL_TAG):
        return None
    try:
        return int(message[len(CONTROL_TAG) :])
    except ValueError:
        return None


def is_probe(message: str) -> bool:
    return str(message) == PROBE_MESSAGE


__all__ = [
    "CONTROL_TAG",
    "ECHO_TAG",
    "ENTITY_TAG",
    "EchoReply",
    "EntityState",
    "PROBE_MESSAGE",
    "decode_control",
    "decode_echo_reply",
    "decode_entity_update",
    "encode_control",
    "frame_tag",
    "is_probe",
    "local_motion_update",
]
