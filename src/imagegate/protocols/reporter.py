"""Protocol for output formats."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from imagegate.core.schema import DispatchReport, GateResult


class Reporter(Protocol):
    """Protocol for output formats (GitHub step outputs, JSON)."""

    format_name: str

    def report_gates(self, gates: GateResult, output: Path) -> None:
        """Write the per-target gate decisions to output path."""
        ...

    def report_dispatch(self, report: DispatchReport, output: Path) -> None:
        """Write per-target dispatch outcomes to output path."""
        ...
