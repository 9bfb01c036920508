"""
Status reports — interval reconstruction and aggregation.

Modules:
  accumulator   : Per-status duration totals + percentage breakdown.
  reconstructor : Interval sweep over one machine's status-change log.
  generator     : ReportGenerator coordinator (fetch → sweep → aggregate).
  presentation  : Duration formatting and status colour lookup.
  export        : DataFrame serialization (CSV, XLSX).

Usage::

    from machine_status.services.reports import report_generator

    report = await report_generator.generate(machines, window, requester="42")
"""

from machine_status.services.reports.accumulator import StatusAccumulator
from machine_status.services.reports.generator import (
    ReportGenerator,
    build_report,
    report_generator,
)
from machine_status.services.reports.reconstructor import (
    MachineBreakdown,
    reconstruct_machine,
)

__all__ = [
    "MachineBreakdown",
    "ReportGenerator",
    "StatusAccumulator",
    "build_report",
    "reconstruct_machine",
    "report_generator",
]
