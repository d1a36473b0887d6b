"""Collect the changed paths of a push from CLI options, a file, or git."""

from __future__ import annotations

import logging
import re
import subprocess
import sys
from pathlib import Path
from typing import Iterable

from imagegate.core.exceptions import ChangeSetError
from imagegate.core.schema import ChangeEvent

log = logging.getLogger(__name__)

#: Timeout (seconds) for git commands.
GIT_TIMEOUT = 60

# Push events carry an all-zero "before" SHA when a branch is created.
_RE_NULL_SHA = re.compile(r"^0+$")


def read_paths_file(path: str | Path) -> list[str]:
    """Read one path per line from a file (``-`` for stdin); blank lines are ignored."""
    if str(path) == "-":
        text = sys.stdin.read()
    else:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise ChangeSetError(f"Cannot read paths file {path}: {e}") from e
    return [line.strip() for line in text.splitlines() if line.strip()]


def _git(args: list[str], repo: Path) -> str:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=str(repo),
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT,
        )
    except FileNotFoundError as e:
        raise ChangeSetError("git not found on PATH") from e
    except subprocess.TimeoutExpired as e:
        raise ChangeSetError(f"git {args[0]} timed out after {GIT_TIMEOUT}s") from e
    if result.returncode != 0:
        raise ChangeSetError(f"git {' '.join(args)} failed: {(result.stderr or result.stdout).strip()}")
    return result.stdout


def git_changed_paths(base: str | None, head: str, repo: str | Path = ".") -> list[str]:
    """Paths changed between base and head, in git's order.

    With no base, or an all-zero base SHA, only the files touched by the head
    commit are returned.
    """
    repo = Path(repo)
    if not base or _RE_NULL_SHA.match(base):
        log.info("No usable base revision; listing files of %s only", head)
        out = _git(["show", "--name-only", "--format=", head], repo)
    else:
        out = _git(["diff", "--name-only", f"{base}..{head}"], repo)
    return [line.strip() for line in out.splitlines() if line.strip()]


def collect_change_event(
    paths: Iterable[str] = (),
    paths_file: str | Path | None = None,
    base: str | None = None,
    head: str | None = None,
    repo: str | Path = ".",
) -> ChangeEvent:
    """Merge every given change source into one ChangeEvent, keeping first-seen order."""
    collected: list[str] = list(paths)
    if paths_file is not None:
        collected.extend(read_paths_file(paths_file))
    if head:
        collected.extend(git_changed_paths(base, head, repo))
    elif base:
        raise ChangeSetError("--base requires --head")

    seen: set[str] = set()
    unique: list[str] = []
    for p in collected:
        if p not in seen:
            seen.add(p)
            unique.append(p)
    event = ChangeEvent.from_paths(unique)
    log.debug("Change event: %d path(s)", len(event.paths))
    return event
