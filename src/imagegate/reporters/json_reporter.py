"""JSON reporter: write gate decisions and dispatch outcomes as JSON."""

from __future__ import annotations

import json
from pathlib import Path

from imagegate.core.schema import DispatchReport, GateResult


class JsonReporter:
    """Reporter that writes JSON output for gates and dispatch outcomes."""

    format_name: str = "json"

    def report_gates(self, gates: GateResult, output: Path) -> None:
        """Write the gate mapping as a JSON object to the output path."""
        output = Path(output).resolve()
        output.parent.mkdir(parents=True, exist_ok=True)
        data = {"gates": dict(gates.gates), "changed": gates.changed()}
        output.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def report_dispatch(self, report: DispatchReport, output: Path) -> None:
        """Write per-target outcomes, failures and overall success to the output path."""
        output = Path(output).resolve()
        output.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "success": report.success,
            "failed": report.failures,
            "outcomes": [o.model_dump() for o in report.outcomes],
        }
        output.write_text(json.dumps(data, indent=2), encoding="utf-8")
