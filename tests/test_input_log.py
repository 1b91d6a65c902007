from __future__ import annotations

from helmsman.sim.controls import Keys
from helmsman.sim.input_log import InputLog


def _log(*entries: tuple[float, int]) -> InputLog:
    log = InputLog(tick_ms=33)
    for when, bitmask in entries:
        log.record(bitmask, when=when)
    return log


def test_merge_yields_exactly_requested_ticks() -> None:
    log = _log((10, Keys.LEFT))

    assert len(list(log.merge(0, 7))) == 7
    assert list(log.merge(0, 0)) == []


def test_merge_takes_last_record_before_each_tick_boundary() -> None:
    log = _log((10, Keys.LEFT), (20, Keys.RIGHT), (40, Keys.UP))

    assert list(log.merge(0, 3)) == [Keys.RIGHT, Keys.UP, Keys.UP]


def test_merge_before_any_record_is_idle() -> None:
    log = _log((100, Keys.DOWN))

    assert list(log.merge(0, 4)) == [0, 0, 0, Keys.DOWN]


def test_merge_on_empty_log_is_idle() -> None:
    assert list(InputLog().merge(500.0, 3)) == [0, 0, 0]


def test_merged_sequence_is_single_use() -> None:
    log = _log((10, Keys.LEFT))
    merged = log.merge(0, 2)

    assert list(merged) == [Keys.LEFT, Keys.LEFT]
    assert list(merged) == []


def test_trim_keeps_record_in_effect_at_cutoff() -> None:
    log = _log((0, 1), (100, 2), (200, 4), (300, 8))

    log.trim(250)

    assert [entry.when for entry in log.records] == [200, 300]
    assert log.state_at(250) == 4


def test_trim_drops_records_superseded_at_cutoff() -> None:
    log = _log((0, 1), (100, 2), (200, 4), (300, 8))

    log.trim(200)

    assert [entry.when for entry in log.records] == [200, 300]
    assert log.state_at(200) == 4


def test_trim_never_drops_the_only_record() -> None:
    log = _log((0, 1))

    log.trim(10_000)

    assert len(log) == 1
    assert log.state_at(10_000) == 1


def test_merge_trims_with_history_margin() -> None:
    log = _log((0, 1), (100, 2), (200, 4), (300, 8), (400, 16))

    list(log.merge(400, 1))

    # Cutoff 400 minus five 33ms ticks keeps the state in effect at 235.
    assert [entry.when for entry in log.records] == [200, 300, 400]


def test_state_at_and_clear() -> None:
    log = _log((10, 1), (20, 3))

    assert log.state_at(5) == 0
    assert log.state_at(15) == 1
    assert log.state_at(20) == 3

    log.clear()
    assert len(log) == 0
    assert log.state_at(20) == 0
