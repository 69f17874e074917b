"""
ElectionTrends - Error Types

Exceptions raised across the query, aggregation, storage and import layers,
plus the soft data-inconsistency record reported by the aggregator.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional


class ElectionTrendsError(Exception):
    """Base class for all ElectionTrends errors."""

    # Machine-readable code sent back in API error envelopes
    code = "SERVER_ERROR"


class InvalidQuery(ElectionTrendsError):
    """
    Raised when a search query or group-by value is malformed.

    Reported to the caller as a client error (HTTP 400).
    """

    code = "INVALID_QUERY"

    def __init__(self, message: str, field_name: Optional[str] = None):
        super().__init__(message)
        self.field_name = field_name


class StoreUnavailable(ElectionTrendsError):
    """
    Raised when the observation store cannot be reached or fails mid-operation.

    Reported to the caller as a server error (HTTP 500). Never retried
    inside the aggregation engine.
    """

    code = "SERVER_ERROR"


class SourceError(ElectionTrendsError):
    """Raised when an import source cannot be read, downloaded or parsed."""

    code = "SOURCE_ERROR"


@dataclass(frozen=True)
class DataInconsistency:
    """
    Soft data-quality finding: one series key spans two political families.

    Never raised. The aggregator keeps the first-seen family and reports
    each conflicting observation with one of these records.
    """
    date: date
    kind: str
    election_id: str
    group_key: str
    kept_family: str
    conflicting_family: str

    def to_dict(self) -> dict:
        """Convert to dictionary for logging and API consumption."""
        return {
            "date": self.date.isoformat(),
            "kind": self.kind,
            "election_id": self.election_id,
            "group_key": self.group_key,
            "kept_family": self.kept_family,
            "conflicting_family": self.conflicting_family
        }

    def describe(self) -> str:
        """Return a one-line description for log output."""
        return (
            f"'{self.group_key}' on {self.date.isoformat()} ({self.kind}, {self.election_id}) "
            f"spans families {self.kept_family} and {self.conflicting_family}; "
            f"keeping {self.kept_family}"
        )
