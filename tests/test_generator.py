"""Tests for report generation across machines."""

from __future__ import annotations

import asyncio
from collections import defaultdict

import pytest
from conftest import T0, FakeDataService, event, hours, machine

from machine_status.core.errors import DataFetchError, ReportSuperseded
from machine_status.models.domain import ReportWindow
from machine_status.services.reports.generator import ReportGenerator, build_report

H_MS = 3_600_000
NOW = hours(5)


def _generator(source, now=NOW, concurrency=4) -> ReportGenerator:
    return ReportGenerator(source=source, clock=lambda: now, concurrency=concurrency)


def test_aggregate_equals_sum_of_machine_reports(plant: FakeDataService) -> None:
    window = ReportWindow(start=hours(1), end=hours(4))

    report = asyncio.run(_generator(plant).generate(plant.machines, window))

    summed = defaultdict(int)
    for machine_report in report.machine_reports:
        for duration in machine_report.status_durations:
            summed[duration.status] += duration.duration

    assert {d.status: d.duration for d in report.status_durations} == dict(summed)
    assert report.total_time == sum(r.total_time for r in report.machine_reports)
    # M1: Running 2h / Idle 1h; M2: Down 3h; M3: Running 2.5h / Down 0.5h
    assert dict(summed) == {
        "Running": int(4.5 * H_MS),
        "Idle": H_MS,
        "Down": int(3.5 * H_MS),
    }


def test_aggregate_percentages_use_aggregate_total(plant: FakeDataService) -> None:
    window = ReportWindow(start=hours(1), end=hours(4))

    report = asyncio.run(_generator(plant).generate(plant.machines, window))

    total = report.total_time
    for duration in report.status_durations:
        assert duration.percentage == pytest.approx(duration.duration / total * 100)
    assert sum(d.percentage for d in report.status_durations) == pytest.approx(100)


def test_end_is_clamped_to_a_single_now(plant: FakeDataService) -> None:
    far = ReportWindow(start=hours(1), end=hours(500))
    at_now = ReportWindow(start=hours(1), end=NOW)

    clamped = asyncio.run(_generator(plant).generate(plant.machines, far))
    exact = asyncio.run(_generator(plant).generate(plant.machines, at_now))

    assert clamped.effective_end == NOW
    assert clamped.status_durations == exact.status_durations
    assert [t.segments for t in clamped.machine_timelines] == [
        t.segments for t in exact.machine_timelines
    ]
    for timeline in clamped.machine_timelines:
        assert all(s.end_time <= NOW for s in timeline.segments)


def test_window_starting_after_now_is_empty_not_an_error(plant: FakeDataService) -> None:
    window = ReportWindow(start=hours(6), end=hours(8))

    report = asyncio.run(_generator(plant).generate(plant.machines, window))

    assert report.is_empty
    assert report.status_durations == []
    assert len(report.machine_reports) == len(plant.machines)
    assert all(r.is_empty for r in report.machine_reports)
    assert all(t.segments == [] for t in report.machine_timelines)


def test_machine_without_history_is_reported_as_explicitly_empty() -> None:
    machines = [machine(1), machine(2)]
    source = FakeDataService(machines, {1: [event(1, "Running", T0)]})

    report = asyncio.run(
        _generator(source).generate(machines, ReportWindow(start=T0, end=hours(2)))
    )

    by_id = {r.machine_id: r for r in report.machine_reports}
    assert by_id[1].total_time == 2 * H_MS
    assert by_id[2].total_time == 0
    assert by_id[2].status_durations == []
    assert report.meta == {"machine_count": 2, "machines_with_data": 1}


def test_fetch_failure_aborts_whole_report(plant: FakeDataService) -> None:
    plant.failing_machine = 2
    window = ReportWindow(start=hours(1), end=hours(4))

    with pytest.raises(DataFetchError):
        asyncio.run(_generator(plant).generate(plant.machines, window))


def test_malformed_history_propagates() -> None:
    class BrokenSource:
        async def get_machine_history(self, machine_id):
            raise ValueError("Invalid isoformat string: 'yesterday'")

    generator = _generator(BrokenSource())

    with pytest.raises(ValueError):
        asyncio.run(generator.generate([machine(1)], ReportWindow(start=T0, end=hours(1))))


def test_histories_fetched_concurrently_within_limit() -> None:
    machines = [machine(i) for i in range(1, 7)]

    class SlowSource:
        def __init__(self) -> None:
            self.in_flight = 0
            self.peak = 0

        async def get_machine_history(self, machine_id):
            self.in_flight += 1
            self.peak = max(self.peak, self.in_flight)
            await asyncio.sleep(0.01)
            self.in_flight -= 1
            return [event(machine_id, "Running", T0)]

    source = SlowSource()
    report = asyncio.run(
        _generator(source, concurrency=2).generate(
            machines, ReportWindow(start=T0, end=hours(1)),
        )
    )

    assert source.peak == 2
    assert report.total_time == 6 * H_MS


def test_newer_request_supersedes_older_one() -> None:
    machines = [machine(1)]
    histories = {1: [event(1, "Running", T0)]}

    class GatedSource:
        def __init__(self) -> None:
            self.calls = 0
            self.gate = asyncio.Event()

        async def get_machine_history(self, machine_id):
            self.calls += 1
            if self.calls == 1:
                await self.gate.wait()
            return histories[machine_id]

    async def scenario():
        source = GatedSource()
        generator = _generator(source)
        window = ReportWindow(start=T0, end=hours(2))

        stale = asyncio.create_task(generator.generate(machines, window, requester="u1"))
        for _ in range(3):
            await asyncio.sleep(0)

        latest = await generator.generate(machines, window, requester="u1")
        source.gate.set()

        with pytest.raises(ReportSuperseded):
            await stale
        return latest

    latest = asyncio.run(scenario())

    assert latest.total_time == 2 * H_MS


def test_requesters_do_not_supersede_each_other(plant: FakeDataService) -> None:
    generator = _generator(plant)
    window = ReportWindow(start=hours(1), end=hours(4))

    async def scenario():
        return await asyncio.gather(
            generator.generate(plant.machines, window, requester="alice"),
            generator.generate(plant.machines, window, requester="bob"),
        )

    alice, bob = asyncio.run(scenario())

    assert alice.status_durations == bob.status_durations


def test_build_report_keeps_machine_order() -> None:
    machines = [machine(3), machine(1)]
    histories = {3: [event(3, "Down", T0)], 1: [event(1, "Running", T0)]}

    report = build_report(machines, histories, ReportWindow(start=T0, end=hours(1)), NOW)

    assert [r.machine_id for r in report.machine_reports] == [3, 1]
    assert [d.status for d in report.status_durations] == ["Down", "Running"]


def test_requests_without_requester_are_never_superseded() -> None:
    machines = [machine(1)]
    histories = {1: [event(1, "Running", T0)]}

    class GatedSource:
        def __init__(self) -> None:
            self.calls = 0
            self.gate = asyncio.Event()

        async def get_machine_history(self, machine_id):
            self.calls += 1
            if self.calls == 1:
                await self.gate.wait()
            return histories[machine_id]

    async def scenario():
        source = GatedSource()
        generator = _generator(source)
        window = ReportWindow(start=T0, end=hours(2))

        first = asyncio.create_task(generator.generate(machines, window))
        for _ in range(3):
            await asyncio.sleep(0)

        second = await generator.generate(machines, window)
        source.gate.set()
        return await first, second

    first, second = asyncio.run(scenario())

    assert first.total_time == second.total_time == 2 * H_MS


def test_finished_requests_release_their_counter(plant: FakeDataService) -> None:
    generator = _generator(plant)
    window = ReportWindow(start=hours(1), end=hours(4))

    asyncio.run(generator.generate(plant.machines, window, requester="u1"))
    plant.failing_machine = 2
    with pytest.raises(DataFetchError):
        asyncio.run(generator.generate(plant.machines, window, requester="u2"))

    assert not generator.is_current("u1", 1)
    assert not generator.is_current("u2", 1)
