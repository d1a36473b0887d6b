"""GitHub Actions reporter: append step outputs to the $GITHUB_OUTPUT file."""

from __future__ import annotations

from pathlib import Path

from imagegate.core.schema import DispatchReport, GateResult


def _bool(value: bool) -> str:
    return "true" if value else "false"


class GithubOutputReporter:
    """Write ``key=value`` lines in the format GitHub reads step outputs from.

    Gates are written both as ``<name>`` and ``<name>_changed`` so downstream
    jobs can use ``needs.<job>.outputs.<name>_changed == 'true'``.
    """

    format_name: str = "github"

    def _append(self, output: Path, lines: list[str]) -> None:
        output = Path(output)
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "a", encoding="utf-8") as f:
            for line in lines:
                f.write(line + "\n")

    def report_gates(self, gates: GateResult, output: Path) -> None:
        lines: list[str] = []
        for name, gate in gates.gates.items():
            lines.append(f"{name}={_bool(gate)}")
            lines.append(f"{name}_changed={_bool(gate)}")
        lines.append("changes=" + ",".join(gates.changed()))
        self._append(output, lines)

    def report_dispatch(self, report: DispatchReport, output: Path) -> None:
        lines = [f"{o.name}_status={o.status}" for o in report.outcomes]
        lines.append("failed=" + ",".join(report.failures))
        lines.append(f"success={_bool(report.success)}")
        self._append(output, lines)
