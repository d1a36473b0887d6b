"""Dispatch publish actions for every target whose gate is open."""

from __future__ import annotations

import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from imagegate.core.exceptions import DispatchError
from imagegate.core.schema import BuildTarget, DispatchReport, GateResult, PublishResult, TargetOutcome
from imagegate.publishers.publish_log import get_logger


def _publish_one(target: BuildTarget) -> TargetOutcome:
    """Run one target's publish action; any failure is confined to this target."""
    log = get_logger()
    start = time.monotonic()
    log.info("=== Publishing %s from %s ===", target.name, target.build_context)
    try:
        if target.publish_action is None:
            raise DispatchError(f"No publish action bound to target {target.name}")
        result = target.publish_action.publish(target.name, target.build_context)
        if not isinstance(result, PublishResult):
            raise DispatchError(f"Publish action for {target.name} returned {type(result).__name__}, not PublishResult")
    except Exception as e:
        log.error("Publish for %s raised: %s", target.name, e)
        return TargetOutcome(
            name=target.name,
            status="failed",
            message=str(e),
            duration_seconds=time.monotonic() - start,
        )

    duration = time.monotonic() - start
    if result.success:
        log.info("=== %s published %s ===", target.name, result.image_ref or "(no image ref)")
        return TargetOutcome(
            name=target.name,
            status="succeeded",
            message=result.message,
            image_ref=result.image_ref,
            duration_seconds=duration,
        )
    log.warning("=== %s failed: %s ===", target.name, result.message)
    return TargetOutcome(
        name=target.name,
        status="failed",
        message=result.message or "Publish failed",
        image_ref=result.image_ref,
        duration_seconds=duration,
    )


def dispatch(
    gate_result: GateResult,
    targets: Sequence[BuildTarget],
    max_workers: int = 1,
) -> DispatchReport:
    """Invoke each gated target's publish action exactly once.

    Targets are independent: a failing or raising publish action marks only
    its own target ``failed``. With ``max_workers > 1`` publish actions run
    concurrently. Outcomes are always reported in target registration order.

    Raises:
        DispatchError: gate_result does not have exactly one entry per target.
    """
    names = [t.name for t in targets]
    if set(names) != set(gate_result.gates) or len(names) != len(gate_result.gates):
        raise DispatchError(
            f"Gate result targets {sorted(gate_result.gates)} do not match registered targets {sorted(names)}"
        )

    gated = [t for t in targets if gate_result[t.name]]
    log = get_logger()
    log.info("Dispatching %d of %d target(s): %s", len(gated), len(targets), ", ".join(t.name for t in gated) or "none")

    results: dict[str, TargetOutcome] = {}
    if max_workers > 1 and len(gated) > 1:
        with ThreadPoolExecutor(max_workers=min(max_workers, len(gated))) as pool:
            futures = {t.name: pool.submit(_publish_one, t) for t in gated}
            for name, future in futures.items():
                results[name] = future.result()
    else:
        for t in gated:
            results[t.name] = _publish_one(t)

    outcomes: list[TargetOutcome] = []
    for t in targets:
        if t.name in results:
            outcomes.append(results[t.name])
        else:
            outcomes.append(TargetOutcome(name=t.name, status="skipped", message="no watched path changed"))
    return DispatchReport(outcomes=outcomes)
