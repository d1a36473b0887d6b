"""Protocol interfaces for pluggable components."""

from imagegate.protocols.publisher import Publisher
from imagegate.protocols.reporter import Reporter

__all__ = [
    "Publisher",
    "Reporter",
]
