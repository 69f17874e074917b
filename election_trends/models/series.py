"""
ElectionTrends - Series Models

Output rows of the aggregation engine and the grouping dimensions they are built on.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Union

from election_trends.models.observations import Observation, ObservationKind, PoliticalFamily
from election_trends.utils.errors import InvalidQuery


class GroupBy(Enum):
    """Dimension that defines one chart line."""
    POLITICAL_FAMILY = "politicalFamily"
    PARTY = "party"
    CANDIDATE_NAME = "candidateName"

    @classmethod
    def parse(cls, value: Union[str, "GroupBy", None], default: "Optional[GroupBy]" = None) -> "GroupBy":
        """
        Resolve a group-by value from its wire form.

        Accepts the canonical names plus the snake_case and legacy
        aliases ("nuance", "political_family", "candidate_name").
        None or an empty string yields the default (political family).

        Raises:
            InvalidQuery: If the value names no known dimension
        """
        if isinstance(value, cls):
            return value
        if value is None or value == "":
            return default or cls.POLITICAL_FAMILY
        if not isinstance(value, str):
            raise InvalidQuery(f"group_by must be a string, got {type(value).__name__}", "group_by")
        group_by = _GROUP_BY_ALIASES.get(value.strip())
        if group_by is None:
            raise InvalidQuery(
                f"Unknown group_by '{value}'; expected one of "
                f"{', '.join(member.value for member in cls)}",
                "group_by"
            )
        return group_by

    def key_for(self, observation: Observation) -> str:
        """Return the group key of an observation along this dimension."""
        if self is GroupBy.POLITICAL_FAMILY:
            return observation.political_family.value
        if self is GroupBy.PARTY:
            return observation.party_label
        return observation.candidate_name


_GROUP_BY_ALIASES = {
    "politicalFamily": GroupBy.POLITICAL_FAMILY,
    "political_family": GroupBy.POLITICAL_FAMILY,
    "nuance": GroupBy.POLITICAL_FAMILY,
    "party": GroupBy.PARTY,
    "candidateName": GroupBy.CANDIDATE_NAME,
    "candidate_name": GroupBy.CANDIDATE_NAME,
}


@dataclass(frozen=True)
class SeriesPoint:
    """
    One reconciled value of one chart line on one day.

    Grain: date x kind x election_id x group_key
    """
    date: date
    kind: ObservationKind
    election_id: str
    group_key: str
    political_family: PoliticalFamily
    value: float
    amount: float = 0.0
    context_count: int = 1

    @property
    def series_key(self) -> tuple:
        """Identity of this point within a response."""
        return (self.date, self.kind, self.election_id, self.group_key)

    def to_dict(self) -> dict:
        """Convert to dictionary for API/dashboard consumption."""
        return {
            "date": self.date.isoformat(),
            "kind": self.kind.value,
            "election_id": self.election_id,
            "group_key": self.group_key,
            "political_family": self.political_family.value,
            "political_family_label": self.political_family.label,
            "value": self.value,
            "amount": self.amount,
            "context_count": self.context_count
        }
