"""Built-in reporters for gate decisions and dispatch outcomes."""

from imagegate.reporters.github_reporter import GithubOutputReporter
from imagegate.reporters.json_reporter import JsonReporter


def register_builtin_reporters(registry) -> None:
    """Register built-in reporters on the given registry."""
    registry.register_reporter("github", GithubOutputReporter)
    registry.register_reporter("json", JsonReporter)


__all__ = [
    "GithubOutputReporter",
    "JsonReporter",
    "register_builtin_reporters",
]
