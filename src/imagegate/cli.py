"""CLI entry point for imagegate."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable

import click

from imagegate import __version__
from imagegate.changes import collect_change_event
from imagegate.core.config import ConfigManager
from imagegate.core.dispatcher import dispatch
from imagegate.core.evaluator import evaluate
from imagegate.core.exceptions import ChangeSetError, ConfigError, DispatchError
from imagegate.core.health import HealthChecker
from imagegate.core.plugin_loader import PluginLoader
from imagegate.core.registry import ComponentRegistry
from imagegate.core.schema import BuildTarget, ChangeEvent, DispatchReport, GateResult
from imagegate.core.targets import build_targets
from imagegate.publishers import register_builtin_publishers
from imagegate.publishers.publish_log import publish_log_context
from imagegate.reporters import register_builtin_reporters

#: Exit code for configuration and input errors (click uses 2 for usage errors too).
EXIT_CONFIG_ERROR = 2

log = logging.getLogger(__name__)


def _load_config_and_registry(
    project_root: Path | None = None,
    config_path: Path | None = None,
) -> tuple[ConfigManager, ComponentRegistry]:
    """Load .env, YAML and process env; register built-ins and plugins."""
    config = ConfigManager(project_root=project_root, config_path=config_path)
    config.load(environ=dict(os.environ))
    registry = ComponentRegistry()
    register_builtin_publishers(registry)
    register_builtin_reporters(registry)
    if (plugins_path := config.project_root / "plugins").exists():
        PluginLoader([plugins_path], registry).load_all()
    return config, registry


def _fail(message: str, code: int = EXIT_CONFIG_ERROR) -> None:
    click.echo(message, err=True)
    raise SystemExit(code)


def change_options(func: Callable) -> Callable:
    """Options shared by commands that take a change event."""
    options = [
        click.option("--path", "paths", multiple=True, help="Changed path (repeatable)."),
        click.option("--paths-file", type=click.Path(allow_dash=True), help="File with one changed path per line ('-' for stdin)."),
        click.option("--base", help="Base revision; changed paths are git diff --name-only BASE..HEAD."),
        click.option("--head", help="Head revision for --base (alone: files of this commit)."),
        click.option("--repo", type=click.Path(path_type=Path, exists=True, file_okay=False), default=".", show_default=True, help="Git checkout to diff in."),
        click.option("--ref", envvar="GITHUB_REF", help="Pushed ref; pushes to unwatched branches publish nothing. [env: GITHUB_REF]"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _gate(
    config: ConfigManager,
    targets: list[BuildTarget],
    paths: tuple[str, ...],
    paths_file: str | None,
    base: str | None,
    head: str | None,
    repo: Path,
    ref: str | None,
) -> GateResult:
    """Collect the change event and evaluate it; unwatched branches gate everything false."""
    if not config.config.branch_allowed(ref):
        log.info("Ref %s is not a watched branch (%s)", ref, ", ".join(config.config.branches))
        click.echo(f"{ref} is not a watched branch; no target is gated.")
        return evaluate(ChangeEvent(), targets)
    event = collect_change_event(paths=paths, paths_file=paths_file, base=base, head=head, repo=repo)
    return evaluate(event, targets)


def _print_gates(gates: GateResult) -> None:
    for name, gate in gates.gates.items():
        click.echo(f"  {name}: {'changed' if gate else 'unchanged'}")


def _print_report(report: DispatchReport) -> None:
    for o in report.outcomes:
        line = f"  {o.name}: {o.status}"
        if o.status == "skipped":
            click.echo(line)
            continue
        line += f" ({o.duration_seconds:.1f}s)"
        if o.status == "failed":
            click.echo(line, err=True)
            if o.message:
                click.echo(f"    {o.message}", err=True)
        else:
            click.echo(line + (f" {o.image_ref}" if o.image_ref else ""))


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", type=click.Path(path_type=Path, dir_okay=False), help="YAML config (default: <project root>/config/default.yaml).")
@click.option("--project-root", type=click.Path(path_type=Path, exists=True, file_okay=False), help="Project root (default: nearest directory with pyproject.toml).")
@click.pass_context
def main(ctx: click.Context, config_path: Path | None, project_root: Path | None) -> None:
    """imagegate: rebuild and publish the container images whose sources changed."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["project_root"] = project_root


@main.command("evaluate")
@change_options
@click.option("--github-output", type=click.Path(path_type=Path, dir_okay=False), envvar="GITHUB_OUTPUT", help="Append gate outputs here. [env: GITHUB_OUTPUT]")
@click.option("--json", "json_path", type=click.Path(path_type=Path, dir_okay=False), help="Write gates as JSON to this file.")
@click.pass_context
def evaluate_cmd(
    ctx: click.Context,
    paths: tuple[str, ...],
    paths_file: str | None,
    base: str | None,
    head: str | None,
    repo: Path,
    ref: str | None,
    github_output: Path | None,
    json_path: Path | None,
) -> None:
    """Decide which targets changed, without publishing anything."""
    try:
        config, registry = _load_config_and_registry(ctx.obj["project_root"], ctx.obj["config_path"])
        targets = build_targets(config, registry, dry_run=True)
        gates = _gate(config, targets, paths, paths_file, base, head, repo, ref)
    except (ConfigError, ChangeSetError) as e:
        _fail(str(e))
        return

    click.echo("Targets:")
    _print_gates(gates)
    if github_output:
        registry.get_reporter("github").report_gates(gates, github_output)
    if json_path:
        registry.get_reporter("json").report_gates(gates, json_path)
        click.echo(f"Wrote {json_path}")


@main.command("publish")
@change_options
@click.option("--dry-run", is_flag=True, help="Log what would be published; do not run docker.")
@click.option("--max-workers", type=click.IntRange(min=1), help="Publish up to N targets in parallel (default: config max_workers).")
@click.option("--log-file", type=click.Path(path_type=Path, dir_okay=False), help="Publish log (default: <project root>/imagegate-publish.log).")
@click.option("--github-output", type=click.Path(path_type=Path, dir_okay=False), envvar="GITHUB_OUTPUT", help="Append gate and status outputs here. [env: GITHUB_OUTPUT]")
@click.option("--json", "json_path", type=click.Path(path_type=Path, dir_okay=False), help="Write the dispatch report as JSON to this file.")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging (includes docker command output).")
@click.pass_context
def publish_cmd(
    ctx: click.Context,
    paths: tuple[str, ...],
    paths_file: str | None,
    base: str | None,
    head: str | None,
    repo: Path,
    ref: str | None,
    dry_run: bool,
    max_workers: int | None,
    log_file: Path | None,
    github_output: Path | None,
    json_path: Path | None,
    verbose: bool,
) -> None:
    """Evaluate the change set, then build and push every changed target."""
    try:
        config, registry = _load_config_and_registry(ctx.obj["project_root"], ctx.obj["config_path"])
        targets = build_targets(config, registry, dry_run=dry_run)
        gates = _gate(config, targets, paths, paths_file, base, head, repo, ref)
    except (ConfigError, ChangeSetError) as e:
        _fail(str(e))
        return

    log_file = log_file or (config.project_root / "imagegate-publish.log")
    workers = max_workers or config.config.max_workers
    with publish_log_context(log_file, verbose=verbose) as log:
        log.info("=== Publish run started (dry_run=%s, max_workers=%d) ===", dry_run, workers)
        log.info("ref=%s changed=%s", ref or "(none)", ", ".join(gates.changed()) or "none")
        try:
            report = dispatch(gates, targets, max_workers=workers)
        except DispatchError as e:
            _fail(str(e))
            return
        log.info("=== Publish run finished: %s ===", "success" if report.success else "failed: " + ", ".join(report.failures))

    click.echo("Targets:")
    _print_report(report)
    if github_output:
        github = registry.get_reporter("github")
        github.report_gates(gates, github_output)
        github.report_dispatch(report, github_output)
    if json_path:
        registry.get_reporter("json").report_dispatch(report, json_path)
    click.echo(f"Publish log: {log_file}")

    if not report.success:
        click.echo(f"Publish failed for: {', '.join(report.failures)}", err=True)
        raise SystemExit(1)
    if not gates.any_changed:
        click.echo("No watched paths changed; nothing published.")


@main.group()
def targets() -> None:
    """Inspect configured build targets."""
    pass


@targets.command("list")
@click.pass_context
def targets_list(ctx: click.Context) -> None:
    """List targets with their watched prefix, build context and image."""
    try:
        config, registry = _load_config_and_registry(ctx.obj["project_root"], ctx.obj["config_path"])
        built = build_targets(config, registry)
    except ConfigError as e:
        _fail(str(e))
        return
    for t in built:
        click.echo(f"{t.name}")
        click.echo(f"  watches:   {t.watched_prefix}/")
        click.echo(f"  context:   {t.build_context}")
        click.echo(f"  image:     {t.image}:{t.tag}")
        click.echo(f"  publisher: {t.publisher}")


@main.group()
def plugins() -> None:
    """List or manage plugins."""
    pass


@plugins.command("list")
@click.pass_context
def plugins_list(ctx: click.Context) -> None:
    """List available publishers and reporters (built-in and plugins)."""
    try:
        _, registry = _load_config_and_registry(ctx.obj["project_root"], ctx.obj["config_path"])
    except ConfigError as e:
        _fail(str(e))
        return
    click.echo("Available components:")
    for kind, names in registry.list_available().items():
        click.echo(f"  {kind.title()}: {', '.join(names) or '(none)'}")


@main.command()
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output.")
@click.option("--skip-docker", is_flag=True, help="Skip docker daemon check.")
@click.option("--skip-aws", is_flag=True, help="Skip aws CLI check.")
@click.pass_context
def check(ctx: click.Context, verbose: bool, skip_docker: bool, skip_aws: bool) -> None:
    """Verify docker, aws CLI and registry credentials; show suggestions for failures."""
    try:
        config, _ = _load_config_and_registry(ctx.obj["project_root"], ctx.obj["config_path"])
    except ConfigError as e:
        _fail(str(e))
        return
    results = HealthChecker(config=config).check_all(skip_docker=skip_docker, skip_aws=skip_aws)
    for r in results:
        click.echo(f"  {r.name}: {'OK' if r.ok else 'FAIL'}")
        if verbose or not r.ok:
            click.echo(f"    {r.message}")
        if not r.ok and r.suggestion:
            click.echo(f"    → {r.suggestion}")
    if all(r.ok for r in results):
        click.echo("All checks passed.")
    else:
        click.echo("Some checks failed. Fix the issues above or follow the suggested steps.", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
