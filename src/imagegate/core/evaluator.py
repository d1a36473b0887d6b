"""Change-set evaluation: decide which build targets a push touches."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from imagegate.core.exceptions import ConfigError
from imagegate.core.schema import BuildTarget, ChangeEvent, GateResult

log = logging.getLogger(__name__)


def validate_targets(targets: Sequence[BuildTarget]) -> None:
    """Raise ConfigError if the target registry is empty or has duplicate names."""
    if not targets:
        raise ConfigError("No build targets registered")
    seen: set[str] = set()
    dupes: list[str] = []
    for target in targets:
        if target.name in seen and target.name not in dupes:
            dupes.append(target.name)
        seen.add(target.name)
    if dupes:
        raise ConfigError(f"Duplicate build target name(s): {', '.join(dupes)}")


def evaluate(
    change_event: ChangeEvent | Iterable[str],
    targets: Sequence[BuildTarget],
) -> GateResult:
    """Map a change event to one gate per target.

    A target's gate is open iff some changed path equals its watched prefix or
    lies beneath it (``prefix + "/"``). Matching is a literal path-prefix test,
    so ``rocky9x/foo`` never opens a gate watching ``rocky9``.

    Raises:
        ConfigError: targets empty or names not unique.
        ChangeSetError: change event malformed. Nothing is computed in that case.
    """
    validate_targets(targets)
    if not isinstance(change_event, ChangeEvent):
        change_event = ChangeEvent.from_paths(change_event)

    gates: dict[str, bool] = {}
    for target in targets:
        hit = next((p for p in change_event.paths if target.matches(p)), None)
        gates[target.name] = hit is not None
        if hit is not None:
            log.debug("Target %s gated open by %s", target.name, hit)
    log.info(
        "Evaluated %d changed path(s) against %d target(s): %s",
        len(change_event.paths),
        len(targets),
        ", ".join(f"{k}={'true' if v else 'false'}" for k, v in gates.items()),
    )
    return GateResult(gates=gates)
