from __future__ import annotations

import pytest

from helmsman.entities import Entity
from helmsman.net.connection import Connection, RecordingTransport
from helmsman.sim.predictor import DeadReckoning
from helmsman.sim.smoother import SnapshotSmoother

TICK = 33.0


def _smoother(clock) -> SnapshotSmoother:
    predictor = DeadReckoning(clock=clock)
    predictor.start(Connection(raw_send=RecordingTransport()))
    return SnapshotSmoother(predictor=predictor)


def test_first_update_becomes_s0_at_receipt_time() -> None:
    smoother = _smoother(lambda: 0.0)

    assert smoother.observe(Entity(x=10.0, y=20.0, vx=0.1), now_ms=1000.0) is True

    assert smoother.s0 is not None
    assert smoother.s0.when == 1000.0
    assert smoother.s1 is None


def test_unchanged_state_does_not_shift_snapshots() -> None:
    smoother = _smoother(lambda: 0.0)
    smoother.observe(Entity(x=10.0, y=20.0), now_ms=1000.0)

    assert smoother.observe(Entity(x=10.0, y=20.0), now_ms=1040.0) is False
    assert smoother.s0 is not None
    assert smoother.s0.when == 1000.0
    assert smoother.s1 is None


@pytest.mark.parametrize(
    ("arrival", "expected"),
    [
        (1040.0, 1033.0),  # late by under two ticks: pulled back to one tick after s1
        (1100.0, 1034.0),  # never stamped more than two ticks in the past
        (1010.0, 1010.0),  # never stamped in the future
    ],
)
def test_new_snapshot_is_reanchored_near_one_tick_after_previous(arrival: float, expected: float) -> None:
    smoother = _smoother(lambda: 0.0)
    smoother.observe(Entity(x=10.0, y=20.0), now_ms=1000.0)

    smoother.observe(Entity(x=11.0, y=20.0), now_ms=arrival)

    assert smoother.s0 is not None and smoother.s1 is not None
    assert smoother.s1.x == 10.0
    assert smoother.s0.when == pytest.approx(expected)


def test_snapshot_after_long_gap_keeps_receipt_time() -> None:
    smoother = _smoother(lambda: 0.0)
    smoother.observe(Entity(x=10.0, y=20.0), now_ms=1000.0)
    arrival = 1000.0 + 12 * TICK

    smoother.observe(Entity(x=30.0, y=20.0), now_ms=arrival)

    assert smoother.s0 is not None
    assert smoother.s0.when == arrival


def test_smooth_without_snapshot_is_none() -> None:
    smoother = _smoother(lambda: 0.0)

    assert smoother.smooth(None, now_ms=1000.0) is None


def test_smooth_at_receipt_time_reports_snapshot() -> None:
    smoother = _smoother(lambda: 0.0)

    corrected = smoother.update(Entity(x=100.0, y=100.0, vx=0.5), None, now_ms=1000.0)

    assert corrected is not None
    assert corrected.x == pytest.approx(100.0)
    assert corrected.vx == pytest.approx(0.5)
    assert corrected.when == 1000.0


def test_smooth_blends_within_a_tick() -> None:
    smoother = _smoother(lambda: 0.0)
    smoother.observe(Entity(x=100.0, y=100.0, vx=0.5), now_ms=1000.0)

    corrected = smoother.smooth(0.0, now_ms=1000.0 + TICK / 2)

    assert corrected is not None
    assert corrected.x == pytest.approx(100.25)
    assert corrected.vx == pytest.approx(0.5 * 0.5 + 0.5 * 0.49)


def test_smooth_does_not_snap_when_update_matches_prediction() -> None:
    smoother = _smoother(lambda: 0.0)
    smoother.observe(Entity(x=100.0, y=100.0, vx=0.5), now_ms=1000.0)

    before = smoother.smooth(0.0, now_ms=1033.0)
    after = smoother.update(Entity(x=100.5, y=100.0, vx=0.49), 0.0, now_ms=1033.0)

    assert before is not None and after is not None
    assert before.x == pytest.approx(100.5)
    assert after.x == pytest.approx(before.x)
    assert after.vx == pytest.approx(before.vx)


def test_latency_projects_further_ahead() -> None:
    smoother = _smoother(lambda: 0.0)
    smoother.observe(Entity(x=100.0, y=100.0, vx=0.5), now_ms=1000.0)

    corrected = smoother.smooth(66.0, now_ms=1000.0)

    assert corrected is not None
    assert corrected.x == pytest.approx(100.0 + 0.5 + 0.49)


def test_latency_tick_count_rounds_half_up() -> None:
    smoother = _smoother(lambda: 0.0)
    smoother.observe(Entity(x=100.0, y=100.0, vx=0.5), now_ms=1000.0)

    corrected = smoother.smooth(TICK / 2, now_ms=1000.0)

    assert corrected is not None
    assert corrected.x == pytest.approx(100.5)


def test_blend_across_world_edge_stays_canonical() -> None:
    smoother = _smoother(lambda: 0.0)
    smoother.observe(Entity(x=1999.9, y=100.0, vx=0.5), now_ms=1000.0)

    corrected = smoother.smooth(0.0, now_ms=1000.0 + TICK / 2)

    assert corrected is not None
    assert corrected.x == pytest.approx(0.15)


def test_reset_forgets_snapshots() -> None:
    smoother = _smoother(lambda: 0.0)
    smoother.observe(Entity(x=1.0, y=1.0), now_ms=1000.0)
    smoother.observe(Entity(x=2.0, y=1.0), now_ms=1033.0)

    smoother.reset()

    assert smoother.s0 is None
    assert smoother.s1 is None
