"""imagegate: rebuild and publish container images whose sources changed."""

__version__ = "0.1.0"
