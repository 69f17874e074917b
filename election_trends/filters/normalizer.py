"""
ElectionTrends - Filter Normalizer

Turns wire-format search parameters into a typed, immutable predicate over
Observations. Performs no aggregation.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, FrozenSet, Iterable, Mapping, Optional

from election_trends.models.observations import (
    ElectionType,
    GeographicLevel,
    Observation,
    PoliticalFamily,
    parse_iso_date
)
from election_trends.models.series import GroupBy
from election_trends.utils.errors import InvalidQuery


logger = logging.getLogger(__name__)


# Accepted wire keys -> canonical field name
QUERY_KEYS: Dict[str, str] = {
    "election_types": "election_types",
    "electionTypes": "election_types",
    "rounds": "rounds",
    "start_date": "start_date",
    "startDate": "start_date",
    "end_date": "end_date",
    "endDate": "end_date",
    "parties": "parties",
    "political_families": "political_families",
    "politicalFamilies": "political_families",
    "nuances": "political_families",
    "candidates": "candidates",
    "level": "level",
    "geographic_level": "level",
    "geographicLevel": "level",
    "city": "city",
    "group_by": "group_by",
    "groupBy": "group_by",
}


@dataclass(frozen=True)
class ObservationFilter:
    """
    Typed predicate over Observations.

    Empty collections and None values impose no constraint. Date bounds
    are inclusive.
    """
    election_types: FrozenSet[str] = field(default_factory=frozenset)
    rounds: FrozenSet[int] = field(default_factory=frozenset)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    parties: FrozenSet[str] = field(default_factory=frozenset)
    political_families: FrozenSet[PoliticalFamily] = field(default_factory=frozenset)
    candidates: FrozenSet[str] = field(default_factory=frozenset)
    geographic_level: Optional[GeographicLevel] = None
    city: Optional[str] = None

    def matches(self, observation: Observation) -> bool:
        """Return True when the observation satisfies every active constraint."""
        if self.election_types and observation.election_type not in self.election_types:
            return False
        if self.rounds and observation.round not in self.rounds:
            return False
        if self.start_date is not None and observation.date < self.start_date:
            return False
        if self.end_date is not None and observation.date > self.end_date:
            return False
        if self.parties and self.parties.isdisjoint(observation.affiliated_parties):
            return False
        if self.political_families and observation.political_family not in self.political_families:
            return False
        if self.candidates and observation.candidate_name not in self.candidates:
            return False
        if self.geographic_level is not None and observation.geographic_level != self.geographic_level:
            return False
        if self.city is not None and observation.city != self.city:
            return False
        return True

    def __call__(self, observation: Observation) -> bool:
        return self.matches(observation)

    @property
    def is_unconstrained(self) -> bool:
        """True when the filter lets every observation through."""
        return self == ObservationFilter()

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        return {
            "election_types": sorted(self.election_types),
            "rounds": sorted(self.rounds),
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "parties": sorted(self.parties),
            "political_families": sorted(family.value for family in self.political_families),
            "candidates": sorted(self.candidates),
            "level": self.geographic_level.value if self.geographic_level else None,
            "city": self.city
        }


@dataclass(frozen=True)
class SearchRequest:
    """A normalized search: which observations, grouped along which dimension."""
    filter: ObservationFilter
    group_by: GroupBy = GroupBy.POLITICAL_FAMILY


class FilterNormalizer:
    """
    Validates and normalizes search queries.

    Handles:
    - Key aliases (snake_case, camelCase, legacy "nuances")
    - Type checks on every field
    - Value checks against the closed sets (election types, rounds,
      families, levels)
    """

    def __init__(self, default_group_by: GroupBy = GroupBy.POLITICAL_FAMILY):
        """
        Initialize the normalizer.

        Args:
            default_group_by: Dimension used when a query names none
        """
        self.default_group_by = default_group_by
        logger.debug("FilterNormalizer initialized")

    def normalize(self, query: Optional[Mapping[str, Any]]) -> ObservationFilter:
        """
        Build an ObservationFilter from a wire-format query.

        Args:
            query: Mapping of wire keys to values (None means no constraint)

        Returns:
            ObservationFilter

        Raises:
            InvalidQuery: On unknown keys or malformed values
        """
        fields = self._canonicalize(query)

        return ObservationFilter(
            election_types=self._parse_collection(
                fields, "election_types", self._parse_election_type
            ),
            rounds=self._parse_collection(fields, "rounds", self._parse_round),
            start_date=self._parse_date(fields, "start_date"),
            end_date=self._parse_date(fields, "end_date"),
            parties=self._parse_collection(fields, "parties", self._parse_label),
            political_families=self._parse_collection(
                fields, "political_families", self._parse_family
            ),
            candidates=self._parse_collection(fields, "candidates", self._parse_label),
            geographic_level=self._parse_level(fields),
            city=self._parse_optional_string(fields, "city")
        )

    def normalize_request(self, query: Optional[Mapping[str, Any]]) -> SearchRequest:
        """
        Build a full SearchRequest (filter + group-by) from a wire-format query.

        Raises:
            InvalidQuery: On unknown keys, malformed values or group_by
        """
        query_filter = self.normalize(query)
        fields = self._canonicalize(query)
        group_by = GroupBy.parse(fields.get("group_by"), self.default_group_by)
        return SearchRequest(filter=query_filter, group_by=group_by)

    def _canonicalize(self, query: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """Map wire keys to canonical names, rejecting unknown keys and duplicates."""
        if query is None:
            return {}
        if not isinstance(query, Mapping):
            raise InvalidQuery(f"Query must be an object, got {type(query).__name__}")

        fields: Dict[str, Any] = {}
        for key, value in query.items():
            canonical = QUERY_KEYS.get(key)
            if canonical is None:
                raise InvalidQuery(f"Unknown query field '{key}'", key)
            if canonical in fields:
                raise InvalidQuery(f"Query field '{key}' given more than once", canonical)
            fields[canonical] = value
        return fields

    def _parse_collection(
        self,
        fields: Dict[str, Any],
        name: str,
        parse_item: Callable[[Any, str], Any]
    ) -> FrozenSet:
        """Parse an optional list field item by item."""
        raw = fields.get(name)
        if raw is None:
            return frozenset()
        if isinstance(raw, (str, bytes)) or not isinstance(raw, Iterable) or isinstance(raw, Mapping):
            raise InvalidQuery(f"'{name}' must be a list, got {type(raw).__name__}", name)

        parsed = set()
        for item in raw:
            value = parse_item(item, name)
            if value is not None:
                parsed.add(value)
        return frozenset(parsed)

    def _parse_label(self, item: Any, name: str) -> Optional[str]:
        """Parse one free-text label; blank labels are dropped."""
        if not isinstance(item, str):
            raise InvalidQuery(f"'{name}' entries must be strings, got {item!r}", name)
        return item.strip() or None

    def _parse_election_type(self, item: Any, name: str) -> Optional[str]:
        label = self._parse_label(item, name)
        if label is None:
            return None
        try:
            return ElectionType(label.lower()).value
        except ValueError:
            raise InvalidQuery(f"Unknown election type '{item}'", name)

    def _parse_round(self, item: Any, name: str) -> int:
        # bool is an int subclass; reject it explicitly
        if isinstance(item, bool):
            raise InvalidQuery(f"Invalid round {item!r}", name)
        try:
            round_number = int(item)
        except (TypeError, ValueError):
            raise InvalidQuery(f"Invalid round {item!r}", name)
        if isinstance(item, float) and item != round_number:
            raise InvalidQuery(f"Invalid round {item!r}", name)
        if round_number not in (1, 2):
            raise InvalidQuery(f"Round must be 1 or 2, got {item!r}", name)
        return round_number

    def _parse_family(self, item: Any, name: str) -> Optional[PoliticalFamily]:
        if isinstance(item, str) and not item.strip():
            return None
        try:
            return PoliticalFamily.parse(item)
        except ValueError as error:
            raise InvalidQuery(str(error), name)

    def _parse_date(self, fields: Dict[str, Any], name: str) -> Optional[date]:
        raw = fields.get(name)
        if raw is None or raw == "":
            return None
        try:
            return parse_iso_date(raw)
        except ValueError as error:
            raise InvalidQuery(str(error), name)

    def _parse_level(self, fields: Dict[str, Any]) -> Optional[GeographicLevel]:
        raw = self._parse_optional_string(fields, "level")
        if raw is None:
            return None
        try:
            return GeographicLevel(raw.lower())
        except ValueError:
            raise InvalidQuery(f"Unknown geographic level '{raw}'", "level")

    def _parse_optional_string(self, fields: Dict[str, Any], name: str) -> Optional[str]:
        raw = fields.get(name)
        if raw is None:
            return None
        if not isinstance(raw, str):
            raise InvalidQuery(f"'{name}' must be a string, got {type(raw).__name__}", name)
        return raw.strip() or None
