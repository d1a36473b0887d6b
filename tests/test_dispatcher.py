"""Tests for dispatching publish actions."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from imagegate.core.dispatcher import dispatch
from imagegate.core.evaluator import evaluate
from imagegate.core.exceptions import DispatchError
from imagegate.core.schema import GateResult, PublishResult

from _helpers import RaisingPublisher, RecordingPublisher, make_target, make_targets


def test_dispatch_invokes_only_gated_target() -> None:
    rocky, ubuntu = RecordingPublisher(), RecordingPublisher()
    targets = make_targets(rocky, ubuntu)
    gates = evaluate(["docker/cbdb/build/rocky9/Dockerfile"], targets)
    report = dispatch(gates, targets)
    assert rocky.calls == [("rocky9", "docker/cbdb/build/rocky9")]
    assert ubuntu.calls == []
    assert report.outcome("rocky9").status == "succeeded"
    assert report.outcome("ubuntu24").status == "skipped"
    assert report.success is True


def test_dispatch_nothing_changed_invokes_nothing() -> None:
    rocky, ubuntu = RecordingPublisher(), RecordingPublisher()
    targets = make_targets(rocky, ubuntu)
    report = dispatch(evaluate(["README.md"], targets), targets)
    assert rocky.calls == [] and ubuntu.calls == []
    assert [o.status for o in report.outcomes] == ["skipped", "skipped"]
    assert report.success is True


def test_each_gated_action_invoked_exactly_once() -> None:
    rocky, ubuntu = RecordingPublisher(), RecordingPublisher()
    targets = make_targets(rocky, ubuntu)
    gates = evaluate(
        ["docker/cbdb/build/rocky9/a", "docker/cbdb/build/rocky9/b", "docker/cbdb/build/ubuntu24/c"],
        targets,
    )
    dispatch(gates, targets)
    assert len(rocky.calls) == 1
    assert len(ubuntu.calls) == 1


def test_failed_result_does_not_stop_other_target() -> None:
    rocky = RecordingPublisher(success=False, message="docker build failed: exit 1")
    ubuntu = RecordingPublisher()
    targets = make_targets(rocky, ubuntu)
    gates = evaluate(["docker/cbdb/build/rocky9/x", "docker/cbdb/build/ubuntu24/y"], targets)
    report = dispatch(gates, targets)
    assert ubuntu.calls == [("ubuntu24", "docker/cbdb/build/ubuntu24")]
    assert report.outcome("rocky9").status == "failed"
    assert "docker build failed" in report.outcome("rocky9").message
    assert report.outcome("ubuntu24").status == "succeeded"
    assert report.failures == ["rocky9"]
    assert report.success is False


@pytest.mark.parametrize("max_workers", [1, 4])
def test_raising_action_is_isolated(max_workers: int) -> None:
    rocky, ubuntu = RaisingPublisher(), RecordingPublisher()
    targets = make_targets(rocky, ubuntu)
    gates = evaluate(["docker/cbdb/build/rocky9/x", "docker/cbdb/build/ubuntu24/y"], targets)
    report = dispatch(gates, targets, max_workers=max_workers)
    assert len(rocky.calls) == 1
    assert len(ubuntu.calls) == 1
    assert report.outcome("rocky9").status == "failed"
    assert "registry unreachable" in report.outcome("rocky9").message
    assert report.outcome("ubuntu24").status == "succeeded"


def test_missing_publish_action_fails_only_that_target() -> None:
    ubuntu = RecordingPublisher()
    targets = make_targets(None, ubuntu)
    targets[0].publish_action = None
    gates = evaluate(["docker/cbdb/build/rocky9/x", "docker/cbdb/build/ubuntu24/y"], targets)
    report = dispatch(gates, targets)
    assert report.outcome("rocky9").status == "failed"
    assert "No publish action" in report.outcome("rocky9").message
    assert report.outcome("ubuntu24").status == "succeeded"


def test_parallel_dispatch_runs_targets_concurrently() -> None:
    barrier = threading.Barrier(2, timeout=5)

    class _BarrierPublisher:
        name = "barrier"

        def publish(self, target_name: str, build_context: str) -> PublishResult:
            # Both targets must be in flight at once to get past the barrier.
            barrier.wait()
            return PublishResult(success=True, image_ref=target_name)

    targets = make_targets(_BarrierPublisher(), _BarrierPublisher())
    gates = evaluate(["docker/cbdb/build/rocky9/x", "docker/cbdb/build/ubuntu24/y"], targets)
    report = dispatch(gates, targets, max_workers=2)
    assert report.success is True
    assert [o.name for o in report.outcomes] == ["rocky9", "ubuntu24"]


def test_outcomes_follow_registration_order() -> None:
    targets = [make_target(n, f"images/{n}") for n in ("z", "a", "m")]
    gates = evaluate(["images/m/x", "images/z/y"], targets)
    report = dispatch(gates, targets, max_workers=3)
    assert [o.name for o in report.outcomes] == ["z", "a", "m"]
    assert [o.status for o in report.outcomes] == ["succeeded", "skipped", "succeeded"]


def test_gate_result_mismatch_raises_before_publishing() -> None:
    rocky, ubuntu = RecordingPublisher(), RecordingPublisher()
    targets = make_targets(rocky, ubuntu)
    with pytest.raises(DispatchError, match="do not match"):
        dispatch(GateResult(gates={"rocky9": True}), targets)
    assert rocky.calls == []


def test_dispatch_logs_to_publish_log(tmp_path: Path) -> None:
    from imagegate.publishers.publish_log import publish_log_context

    targets = make_targets()
    gates = evaluate(["docker/cbdb/build/ubuntu24/Dockerfile"], targets)
    log_file = tmp_path / "publish.log"
    with publish_log_context(log_file):
        dispatch(gates, targets)
    content = log_file.read_text(encoding="utf-8")
    assert "Dispatching 1 of 2 target(s): ubuntu24" in content
    assert "Publishing ubuntu24" in content


@pytest.mark.parametrize("max_workers", [1, 2])
def test_action_returning_wrong_type_is_isolated(max_workers: int) -> None:
    class _NoResultPublisher:
        name = "no-result"

        def publish(self, target_name: str, build_context: str) -> None:
            return None

    ubuntu = RecordingPublisher()
    targets = make_targets(_NoResultPublisher(), ubuntu)
    gates = evaluate(["docker/cbdb/build/rocky9/x", "docker/cbdb/build/ubuntu24/y"], targets)
    report = dispatch(gates, targets, max_workers=max_workers)
    assert report.outcome("rocky9").status == "failed"
    assert "returned NoneType" in report.outcome("rocky9").message
    assert report.outcome("ubuntu24").status == "succeeded"
    assert ubuntu.calls == [("ubuntu24", "docker/cbdb/build/ubuntu24")]
    assert report.failures == ["rocky9"]
