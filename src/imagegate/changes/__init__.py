"""Change sources: explicit paths, path files, git history."""

from imagegate.changes.sources import collect_change_event, git_changed_paths, read_paths_file

__all__ = [
    "collect_change_event",
    "git_changed_paths",
    "read_paths_file",
]
