"""
ElectionTrends - Import Summary
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class ImportSummary:
    """Outcome of one import run."""
    source: str
    elections_imported: int = 0
    polls_imported: int = 0
    observations_deleted: int = 0
    observations_imported: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def total_rows(self) -> int:
        return self.observations_imported + self.skipped + self.error_count

    def to_dict(self) -> dict:
        """Convert to dictionary for logging and CLI output."""
        return {
            "source": self.source,
            "elections_imported": self.elections_imported,
            "polls_imported": self.polls_imported,
            "observations_deleted": self.observations_deleted,
            "observations_imported": self.observations_imported,
            "skipped": self.skipped,
            "errors": self.error_count
        }
