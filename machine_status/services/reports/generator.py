"""
ReportGenerator — thin coordinator for status report generation.

Single Responsibility: wire the phases together in order.
All heavy logic is delegated to specialized modules:

  Fetch      → DataService.get_machine_history  (one call per machine)
  Sweep      → reconstruct_machine              (``reconstructor.py``)
  Aggregate  → StatusAccumulator                (``accumulator.py``)

``generate()`` flow:
  issue token → capture now → fetch all histories (bounded, concurrent)
  → sweep each machine → fold into aggregate → check token → return

Usage::

    from machine_status.services.reports import report_generator

    report = await report_generator.generate(machines, window, requester="42")
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from machine_status.core.config import settings
from machine_status.core.errors import ReportSuperseded
from machine_status.core.timeutil import utc_now
from machine_status.models.domain import (
    Machine,
    MachineReport,
    MachineTimeline,
    ReportWindow,
    StatusChangeEvent,
    StatusReport,
)
from machine_status.services.broker.data_service import data_service
from machine_status.services.reports.accumulator import StatusAccumulator
from machine_status.services.reports.reconstructor import reconstruct_machine

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class HistorySource(Protocol):
    async def get_machine_history(self, machine_id: int) -> List[StatusChangeEvent]:
        ...


class ReportGenerator:
    """
    Generates status reports; the latest request per requester wins.

    Each ``generate()`` call takes a generation token for its requester.
    When a newer call for the same requester starts before an older one
    finishes, the older one raises ``ReportSuperseded`` instead of
    returning, so its result is never committed.  Calls without a
    requester are never superseded.  A requester's counter is dropped
    once none of its requests are in flight.
    """

    def __init__(
        self,
        source: Optional[HistorySource] = None,
        clock: Optional[Clock] = None,
        concurrency: Optional[int] = None,
    ) -> None:
        self._source = source or data_service
        self._clock = clock or utc_now
        self._concurrency = max(1, concurrency or settings.HISTORY_FETCH_CONCURRENCY)
        self._generations: Dict[str, int] = {}
        self._in_flight: Dict[str, int] = {}

    # ─────────────────────────────────────────────────────────
    #  PUBLIC API
    # ─────────────────────────────────────────────────────────

    async def generate(
        self,
        machines: Sequence[Machine],
        window: ReportWindow,
        requester: Optional[str] = None,
    ) -> StatusReport:
        """
        Full report pipeline for the given machines and window.

        Raises:
            DataFetchError:   any history fetch failed; nothing is returned.
            ReportSuperseded: a newer request for *requester* started.
        """
        token = self._begin(requester)
        t0 = time.perf_counter()

        try:
            now = self._clock()
            histories = await self._fetch_histories(machines)
            report = build_report(machines, histories, window, now)

            self._ensure_current(requester, token)
        finally:
            self._finish(requester)

        elapsed = time.perf_counter() - t0
        _log_summary(report, elapsed)
        return report

    def is_current(self, requester: str, token: int) -> bool:
        return self._generations.get(requester) == token

    # ─────────────────────────────────────────────────────────
    #  INTERNAL STEPS
    # ─────────────────────────────────────────────────────────

    def _begin(self, requester: Optional[str]) -> int:
        if requester is None:
            return 0
        token = self._generations.get(requester, 0) + 1
        self._generations[requester] = token
        self._in_flight[requester] = self._in_flight.get(requester, 0) + 1
        return token

    def _finish(self, requester: Optional[str]) -> None:
        if requester is None:
            return
        self._in_flight[requester] -= 1
        if not self._in_flight[requester]:
            del self._in_flight[requester]
            del self._generations[requester]

    def _ensure_current(self, requester: Optional[str], token: int) -> None:
        if requester is None or self.is_current(requester, token):
            return
        latest = self._generations[requester]
        logger.info(
            f"[ReportGenerator] Discarding report {token} for "
            f"'{requester}' (latest is {latest})"
        )
        raise ReportSuperseded(requester, token, latest)

    async def _fetch_histories(
        self,
        machines: Sequence[Machine],
    ) -> Dict[int, List[StatusChangeEvent]]:
        """Fetch every machine's log; the first failure propagates."""
        semaphore = asyncio.Semaphore(self._concurrency)

        async def fetch_one(machine: Machine) -> List[StatusChangeEvent]:
            async with semaphore:
                return await self._source.get_machine_history(machine.id)

        results = await asyncio.gather(*(fetch_one(m) for m in machines))
        return {m.id: history for m, history in zip(machines, results)}


# ─────────────────────────────────────────────────────────────────
# Pure assembly (module-level functions, no state)
# ─────────────────────────────────────────────────────────────────

def build_report(
    machines: Sequence[Machine],
    histories: Dict[int, List[StatusChangeEvent]],
    window: ReportWindow,
    now: datetime,
) -> StatusReport:
    """
    Sweep every machine against one shared effective end and fold the
    per-machine totals into the aggregate, in machine order.

    Machines with nothing measurable are kept with empty breakdowns.
    """
    effective_end = window.effective_end(now)
    aggregate = StatusAccumulator()
    machine_reports: List[MachineReport] = []
    machine_timelines: List[MachineTimeline] = []

    for machine in machines:
        breakdown = reconstruct_machine(
            histories.get(machine.id, []),
            machine_created_at=machine.created_at,
            window_start=window.start,
            effective_end=effective_end,
        )
        aggregate.merge(breakdown.totals.totals())

        machine_reports.append(
            MachineReport(
                machine_id=machine.id,
                machine_code=machine.code,
                machine_name=machine.name,
                status_durations=breakdown.status_durations(),
                total_time=breakdown.total_time,
            )
        )
        machine_timelines.append(
            MachineTimeline(
                machine_id=machine.id,
                machine_code=machine.code,
                machine_name=machine.name,
                segments=list(breakdown.segments),
            )
        )

    return StatusReport(
        status_durations=aggregate.breakdown(),
        total_time=aggregate.total,
        machine_reports=machine_reports,
        machine_timelines=machine_timelines,
        window=window,
        effective_end=effective_end,
        generated_at=now,
        meta={
            "machine_count": len(machines),
            "machines_with_data": sum(1 for r in machine_reports if not r.is_empty),
        },
    )


def _log_summary(report: StatusReport, elapsed: float) -> None:
    """Log a one-line summary of the completed report."""
    logger.info(
        f"[ReportGenerator] Completed in {elapsed:.2f}s — "
        f"{report.meta['machine_count']} machines, "
        f"{len(report.status_durations)} statuses, "
        f"total {report.total_time} ms"
    )


# ── Singleton ────────────────────────────────────────────────────
report_generator = ReportGenerator()
