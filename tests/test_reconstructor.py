"""Tests for the interval sweep over one machine's status log."""

from __future__ import annotations

from datetime import timedelta

from conftest import HOUR, T0, event, hours

from machine_status.core.timeutil import to_epoch_ms
from machine_status.services.reports.reconstructor import (
    carried_over_status,
    reconstruct_machine,
)

H_MS = 3_600_000


def _durations(breakdown) -> dict:
    return {d.status: d.duration for d in breakdown.status_durations()}


def _shift_history():
    return [
        event(1, "Running", hours(0)),
        event(1, "Idle", hours(2), comment="lunch"),
        event(1, "Running", hours(3)),
    ]


def test_shift_scenario_splits_running_around_lunch() -> None:
    breakdown = reconstruct_machine(
        _shift_history(),
        machine_created_at=T0,
        window_start=hours(1),
        effective_end=hours(4),
    )

    assert _durations(breakdown) == {"Running": 2 * H_MS, "Idle": H_MS}
    assert breakdown.total_time == 3 * H_MS
    percentages = {d.status: d.percentage for d in breakdown.status_durations()}
    assert abs(percentages["Running"] - 200 / 3) < 1e-9
    assert abs(percentages["Idle"] - 100 / 3) < 1e-9
    assert [(s.status, s.duration) for s in breakdown.segments] == [
        ("Running", H_MS),
        ("Idle", H_MS),
        ("Running", H_MS),
    ]
    assert breakdown.segments[0].start_time == hours(1)
    assert breakdown.segments[-1].end_time == hours(4)


def test_unsorted_history_gives_same_result() -> None:
    shuffled = list(reversed(_shift_history()))
    expected = reconstruct_machine(_shift_history(), T0, hours(1), hours(4))
    actual = reconstruct_machine(shuffled, T0, hours(1), hours(4))

    assert actual.segments == expected.segments


def test_nothing_counted_before_machine_creation() -> None:
    created = hours(10)
    history = [
        event(1, "Idle", hours(5)),
        event(1, "Running", hours(10)),
        event(1, "Down", hours(15)),
    ]

    breakdown = reconstruct_machine(history, created, window_start=T0, effective_end=hours(20))

    assert breakdown.report_start == created
    assert _durations(breakdown) == {"Running": 5 * H_MS, "Down": 5 * H_MS}
    assert breakdown.segments[0].start_time == created
    assert all(s.status != "Idle" for s in breakdown.segments)


def test_empty_history_is_an_empty_report() -> None:
    breakdown = reconstruct_machine([], T0, hours(1), hours(4))

    assert breakdown.is_empty
    assert breakdown.status_durations() == []
    assert breakdown.segments == []
    assert breakdown.total_time == 0


def test_window_starting_at_or_after_end_is_empty() -> None:
    breakdown = reconstruct_machine(_shift_history(), T0, hours(4), hours(4))
    assert breakdown.is_empty

    breakdown = reconstruct_machine(_shift_history(), T0, hours(6), hours(4))
    assert breakdown.is_empty


def test_first_change_at_or_after_end_is_empty() -> None:
    history = [event(1, "Running", hours(4)), event(1, "Idle", hours(5))]

    breakdown = reconstruct_machine(history, T0, hours(1), hours(4))

    assert breakdown.is_empty


def test_unknown_status_before_first_change_is_not_counted() -> None:
    history = [event(1, "Running", hours(2))]

    breakdown = reconstruct_machine(history, T0, hours(1), hours(4))

    assert breakdown.carried_over_status is None
    assert _durations(breakdown) == {"Running": 2 * H_MS}
    assert breakdown.segments[0].start_time == hours(2)


def test_change_exactly_at_report_start_has_no_zero_length_segment() -> None:
    history = [event(1, "Idle", hours(0)), event(1, "Running", hours(1))]

    breakdown = reconstruct_machine(history, T0, hours(1), hours(3))

    assert breakdown.carried_over_status == "Running"
    assert [(s.status, s.duration) for s in breakdown.segments] == [("Running", 2 * H_MS)]


def test_change_exactly_at_effective_end_is_ignored() -> None:
    history = [event(1, "Running", hours(0)), event(1, "Down", hours(3))]

    breakdown = reconstruct_machine(history, T0, hours(1), hours(3))

    assert _durations(breakdown) == {"Running": 2 * H_MS}
    assert breakdown.segments[-1].end_time == hours(3)


def test_carried_over_status_without_changes_covers_whole_window() -> None:
    history = [event(1, "Maintenance", hours(0.25))]

    breakdown = reconstruct_machine(history, T0 - HOUR, hours(2), hours(6))

    assert breakdown.carried_over_status == "Maintenance"
    assert [(s.status, s.start_time, s.end_time) for s in breakdown.segments] == [
        ("Maintenance", hours(2), hours(6)),
    ]
    assert breakdown.total_time == 4 * H_MS


def test_carried_over_status_is_latest_before_start() -> None:
    events = [
        event(1, "Running", hours(0)),
        event(1, "Idle", hours(1)),
        event(1, "Down", hours(3)),
    ]

    assert carried_over_status(events, hours(2)) == "Idle"
    assert carried_over_status(events, hours(1)) == "Idle"
    assert carried_over_status(events, hours(-1)) is None


def test_repeated_status_accumulates_into_one_entry() -> None:
    history = [
        event(1, "Running", hours(0)),
        event(1, "Running", hours(1)),
        event(1, "Idle", hours(2)),
    ]

    breakdown = reconstruct_machine(history, T0, T0, hours(3))

    assert _durations(breakdown) == {"Running": 2 * H_MS, "Idle": H_MS}
    assert len(breakdown.segments) == 3


def test_far_future_end_matches_end_at_now() -> None:
    now = hours(5)
    far_future = hours(1000)

    clamped = reconstruct_machine(_shift_history(), T0, hours(1), min(far_future, now))
    at_now = reconstruct_machine(_shift_history(), T0, hours(1), now)

    assert clamped.segments == at_now.segments
    assert _durations(clamped) == _durations(at_now)


def test_segments_conserve_time_and_never_overlap() -> None:
    history = [
        event(1, "Running", hours(0.25)),
        event(1, "Idle", hours(1.5)),
        event(1, "Down", hours(1.75)),
        event(1, "Running", hours(4)),
        event(1, "Setup", hours(7.2)),
    ]
    window_start, end = hours(1), hours(8)

    breakdown = reconstruct_machine(history, T0, window_start, end)

    segment_total = sum(s.duration for s in breakdown.segments)
    duration_total = sum(d.duration for d in breakdown.status_durations())
    assert segment_total == duration_total == breakdown.total_time
    assert segment_total == (end - window_start) // timedelta(milliseconds=1)

    ordered = sorted(breakdown.segments, key=lambda s: s.start_time)
    for previous, current in zip(ordered, ordered[1:]):
        assert previous.end_time <= current.start_time
        assert previous.end_time <= current.end_time


def test_unknown_leading_gap_is_the_only_gap() -> None:
    history = [event(1, "Running", hours(2)), event(1, "Idle", hours(3))]
    window_start, end = hours(1), hours(5)

    breakdown = reconstruct_machine(history, T0, window_start, end)

    assert breakdown.total_time == 3 * H_MS
    assert breakdown.segments[0].start_time == hours(2)
    for previous, current in zip(breakdown.segments, breakdown.segments[1:]):
        assert previous.end_time == current.start_time


def test_sub_millisecond_timestamps_conserve_the_window() -> None:
    def at(ms: float):
        return T0 + timedelta(milliseconds=ms)

    history = [
        event(1, "Running", at(0.6)),
        event(1, "Idle", at(2.1)),
        event(1, "Down", at(3.6)),
    ]

    breakdown = reconstruct_machine(history, T0, at(0.6), at(10))

    assert sum(s.duration for s in breakdown.segments) == breakdown.total_time
    assert breakdown.total_time == to_epoch_ms(at(10)) - to_epoch_ms(at(0.6))
    assert _durations(breakdown) == {"Running": 2, "Idle": 1, "Down": 7}
