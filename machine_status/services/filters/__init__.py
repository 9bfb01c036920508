"""
Request scoping — everything decided before the report engine runs.

Modules:
  window        : ReportWindow parsing from user input.
  machine_scope : Selection + role-based target machine resolution.
"""

from machine_status.services.filters.machine_scope import (
    MachineScopeResolver,
    select_machines,
)
from machine_status.services.filters.window import parse_report_window

__all__ = ["MachineScopeResolver", "parse_report_window", "select_machines"]
