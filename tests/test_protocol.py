from __future__ import annotations

import pytest

from helmsman.net.protocol import (
    EchoReply,
    decode_control,
    decode_echo_reply,
    decode_entity_update,
    encode_control,
    frame_tag,
    is_probe,
    local_motion_update,
)


def test_local_motion_update_extracts_own_entity() -> None:
    message = 'e:{"abc":{"vx":0.5,"vy":-0.25,"x":10,"y":20.5,"onTheLine":false},"zzz":{"x":1}}'

    state = local_motion_update(message, "abc")

    assert state is not None
    assert state.vx == pytest.approx(0.5)
    assert state.vy == pytest.approx(-0.25)
    assert state.x == pytest.approx(10.0)
    assert state.y == pytest.approx(20.5)


def test_local_motion_update_ignores_fragments_without_velocity() -> None:
    assert local_motion_update('e:{"abc":{"x":10,"y":20}}', "abc") is None
    assert local_motion_update('e:{"abc":{"vx":0.1}}', "abc") is None


def test_local_motion_update_ignores_other_entities() -> None:
    assert local_motion_update('e:{"other":{"vx":0.5,"vy":0.1}}', "abc") is None


@pytest.mark.parametrize(
    "message",
    [
        'a:{"abc":{"vx":0.5,"vy":0.1}}',
        'e:{"abc":{"vx":0.5,',
        "e:[1,2,3]",
        'e:{"abc":null}',
        'e:{"abc":{"vx":"fast","vy":0}}',
    ],
)
def test_decode_entity_update_rejects_malformed_or_irrelevant(message: str) -> None:
    assert decode_entity_update(message, "abc") is None


def test_decode_entity_update_tolerates_odd_neighbours() -> None:
    state = decode_entity_update('e:{"weird":[1,"x"],"abc":{"x":3}}', "abc")

    assert state is not None
    assert state.x == pytest.approx(3.0)
    assert state.vx is None


def test_decode_echo_reply() -> None:
    assert decode_echo_reply('a:{"x":1.5,"y":2}') == EchoReply(x=1.5, y=2.0)


@pytest.mark.parametrize("message", ['a:{"x":1.5}', "a:nope", 'e:{"x":1,"y":2}', "ahoy!"])
def test_decode_echo_reply_rejects_malformed_or_irrelevant(message: str) -> None:
    assert decode_echo_reply(message) is None


def test_control_frames() -> None:
    assert encode_control(5) == "ks:5"
    assert decode_control("ks:17") == 17
    assert decode_control("ks:x") is None
    assert decode_control("ahoy!") is None


def test_frame_tag_and_probe_literal() -> None:
    assert frame_tag("ks:3") == "ks:"
    assert frame_tag('e:{"a":1}') == "e:"
    assert frame_tag("ahoy!") == "ahoy!"
    assert is_probe("ahoy!") is True
    assert is_probe("ahoy") is False


@pytest.mark.parametrize(
    "message",
    [
        'e:{"abc":{"x":"nan","y":1,"vx":0,"vy":0}}',
        'e:{"abc":{"x":1,"y":2,"vx":"inf","vy":0}}',
        'e:{"abc":{"x":1,"y":2,"vx":0,"vy":"-Infinity"}}',
    ],
)
def test_local_motion_update_rejects_non_finite_numbers(message: str) -> None:
    assert local_motion_update(message, "abc") is None


@pytest.mark.parametrize("message", ['a:{"x":"nan","y":1}', 'a:{"x":1,"y":"inf"}'])
def test_decode_echo_reply_rejects_non_finite_numbers(message: str) -> None:
    assert decode_echo_reply(message) is None
