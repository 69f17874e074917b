"""
ElectionTrends - Observation Models

One Observation is one candidate's share in one electoral context: an official
result, or one hypothesis of one opinion poll.

Grain: Context (result or poll + hypothesis) x Candidate
"""

import re
import unicodedata
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Optional, Union


class ObservationKind(Enum):
    """Where a percentage comes from."""
    RESULT = "result"
    POLL = "poll"


class GeographicLevel(Enum):
    """Scope of an observation."""
    NATIONAL = "national"
    MUNICIPAL = "municipal"


class ElectionType(Enum):
    """Election families covered by the dataset."""
    PRESIDENTIELLE = "presidentielle"
    MUNICIPALE = "municipale"
    EUROPEENNE = "europeenne"
    LEGISLATIVE = "legislative"
    REGIONALE = "regionale"
    METROPOLITAINE = "metropolitaine"


class PoliticalFamily(Enum):
    """Coarse left-right classification bucket (nuance)."""
    FAR_LEFT = "far-left"
    LEFT = "left"
    CENTRE = "centre"
    RIGHT = "right"
    FAR_RIGHT = "far-right"
    OTHER = "other"

    @property
    def label(self) -> str:
        """French display label, as published in the source datasets."""
        return FAMILY_LABELS[self]

    @property
    def color(self) -> str:
        """Chart colour used for every series of this family."""
        return FAMILY_COLORS[self]

    @classmethod
    def parse(cls, value: Union[str, "PoliticalFamily"]) -> "PoliticalFamily":
        """
        Resolve a family from its code ("far-left") or French label ("Extreme gauche").

        Matching ignores case, accents and surrounding whitespace.

        Raises:
            ValueError: If the value names no known family
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Political family must be a string, got {type(value).__name__}")
        family = _FAMILY_LOOKUP.get(_fold(value))
        if family is None:
            raise ValueError(f"Unknown political family: '{value}'")
        return family


FAMILY_LABELS: Dict[PoliticalFamily, str] = {
    PoliticalFamily.FAR_LEFT: "Extreme gauche",
    PoliticalFamily.LEFT: "Gauche",
    PoliticalFamily.CENTRE: "Centre",
    PoliticalFamily.RIGHT: "Droite",
    PoliticalFamily.FAR_RIGHT: "Extreme droite",
    PoliticalFamily.OTHER: "Autre",
}

FAMILY_COLORS: Dict[PoliticalFamily, str] = {
    PoliticalFamily.FAR_LEFT: "#8B0000",
    PoliticalFamily.LEFT: "#FF6B6B",
    PoliticalFamily.CENTRE: "#FFD700",
    PoliticalFamily.RIGHT: "#87CEEB",
    PoliticalFamily.FAR_RIGHT: "#00008B",
    PoliticalFamily.OTHER: "#808080",
}


def _fold(text: str) -> str:
    """Lower-case, strip accents and collapse separators for lookups."""
    decomposed = unicodedata.normalize("NFKD", text.strip().lower())
    without_accents = "".join(char for char in decomposed if not unicodedata.combining(char))
    return re.sub(r"[\s_\-]+", " ", without_accents)


_FAMILY_LOOKUP: Dict[str, PoliticalFamily] = {}
for _family in PoliticalFamily:
    _FAMILY_LOOKUP[_fold(_family.value)] = _family
    _FAMILY_LOOKUP[_fold(FAMILY_LABELS[_family])] = _family


def parse_iso_date(value: Union[str, date, datetime]) -> date:
    """
    Parse a reference date.

    Accepts date / datetime objects, "YYYY-MM-DD" strings and ISO 8601
    timestamps (a trailing "Z" is allowed); the time part is dropped.

    Raises:
        ValueError: If the value cannot be read as a date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected an ISO date string, got {value!r}")

    text = value.strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError as error:
        raise ValueError(f"Invalid ISO date '{value}': {error}") from error


_ROUND_SUFFIX = re.compile(r"_t([12])$")


def round_from_election_id(election_id: str, default: int = 1) -> int:
    """Read the round number from an id such as 'presidentielle_2022_t2'."""
    match = _ROUND_SUFFIX.search(election_id)
    return int(match.group(1)) if match else default


def normalize_parties(parties: Union[str, Iterable[str], None]) -> FrozenSet[str]:
    """Build the affiliated-party set from a single label or a list of labels."""
    if parties is None:
        return frozenset()
    if isinstance(parties, str):
        parties = [parties]
    return frozenset(party.strip() for party in parties if party and party.strip())


@dataclass(frozen=True)
class PollContext:
    """Identifies one roster ("hypothesis") tested in one poll."""
    poll_id: str
    hypothesis_label: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {"poll_id": self.poll_id, "hypothesis_label": self.hypothesis_label}


@dataclass(frozen=True)
class Observation:
    """
    One candidate's measured (result) or polled share in one context.

    Immutable once loaded. Poll observations always carry a PollContext;
    result observations never do.
    """
    kind: ObservationKind
    election_id: str
    election_type: str
    round: int
    date: date
    candidate_name: str
    political_family: PoliticalFamily
    affiliated_parties: FrozenSet[str] = field(default_factory=frozenset)
    geographic_level: GeographicLevel = GeographicLevel.NATIONAL
    city: str = ""
    percentage_of_expressed: float = 0.0
    amount: float = 0.0
    poll_context: Optional[PollContext] = None

    def __post_init__(self):
        if self.round not in (1, 2):
            raise ValueError(f"Round must be 1 or 2, got {self.round}")
        if not 0.0 <= self.percentage_of_expressed <= 100.0:
            raise ValueError(
                f"percentage_of_expressed must be within 0-100, got {self.percentage_of_expressed}"
            )
        if self.amount < 0:
            raise ValueError(f"amount must be >= 0, got {self.amount}")
        if self.kind == ObservationKind.POLL and self.poll_context is None:
            raise ValueError("Poll observations require a poll context")
        if self.kind == ObservationKind.RESULT and self.poll_context is not None:
            raise ValueError("Result observations cannot carry a poll context")

    @property
    def poll_id(self) -> Optional[str]:
        """Poll identifier, None for results."""
        return self.poll_context.poll_id if self.poll_context else None

    @property
    def hypothesis_label(self) -> Optional[str]:
        """Hypothesis label, None for results."""
        return self.poll_context.hypothesis_label if self.poll_context else None

    @property
    def party_label(self) -> str:
        """Affiliated parties joined deterministically (sorted, comma separated)."""
        return ", ".join(sorted(self.affiliated_parties))

    def to_dict(self) -> dict:
        """Convert to dictionary for storage and API output."""
        return {
            "kind": self.kind.value,
            "election_id": self.election_id,
            "election_type": self.election_type,
            "round": self.round,
            "date": self.date.isoformat(),
            "candidate_name": self.candidate_name,
            "affiliated_parties": sorted(self.affiliated_parties),
            "political_family": self.political_family.value,
            "geographic_level": self.geographic_level.value,
            "city": self.city,
            "percentage_of_expressed": self.percentage_of_expressed,
            "amount": self.amount,
            "poll_context": self.poll_context.to_dict() if self.poll_context else None
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Observation":
        """
        Rebuild an Observation from its stored dictionary form.

        Args:
            data: Dictionary produced by to_dict()

        Returns:
            Observation instance
        """
        context = data.get("poll_context")
        return cls(
            kind=ObservationKind(data["kind"]),
            election_id=data["election_id"],
            election_type=data["election_type"],
            round=int(data["round"]),
            date=parse_iso_date(data["date"]),
            candidate_name=data["candidate_name"],
            political_family=PoliticalFamily(data["political_family"]),
            affiliated_parties=normalize_parties(data.get("affiliated_parties")),
            geographic_level=GeographicLevel(data.get("geographic_level", "national")),
            city=data.get("city") or "",
            percentage_of_expressed=float(data["percentage_of_expressed"]),
            amount=float(data.get("amount") or 0),
            poll_context=PollContext(
                poll_id=context["poll_id"],
                hypothesis_label=context.get("hypothesis_label") or ""
            ) if context else None
        )

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Observation":
        """
        Create an Observation from an open-data datapoint record.

        Understands the published field names (type, election_tour, party,
        nuance, level, result_pourcentage_exprime, result_amount, poll_id,
        hypothese) as well as the stored names.

        Args:
            record: Datapoint dictionary from an import file or the bulk API

        Returns:
            Observation instance

        Raises:
            KeyError: If a required field is missing
            ValueError: If a field holds an invalid value
        """
        kind = ObservationKind(record.get("type") or record["kind"])
        election_id = record["election_id"]

        round_value = record.get("election_tour", record.get("round"))
        round_number = int(round_value) if round_value is not None else round_from_election_id(election_id)

        percentage = record.get("result_pourcentage_exprime")
        if percentage is None:
            percentage = record.get("percentage_of_expressed", record.get("value"))
        if percentage is None:
            raise KeyError("result_pourcentage_exprime")

        amount = record.get("result_amount", record.get("amount"))

        context = None
        if kind == ObservationKind.POLL:
            poll_id = record.get("poll_id") or record.get("poll_source")
            if not poll_id:
                raise KeyError("poll_id")
            context = PollContext(
                poll_id=str(poll_id),
                hypothesis_label=record.get("hypothese") or record.get("hypothesis_label") or ""
            )

        parties = record.get("party", record.get("affiliated_parties"))

        return cls(
            kind=kind,
            election_id=election_id,
            election_type=ElectionType(record["election_type"]).value,
            round=round_number,
            date=parse_iso_date(record["date"]),
            candidate_name=record["candidate_name"].strip(),
            political_family=PoliticalFamily.parse(
                record.get("nuance") or record.get("political_family") or "Autre"
            ),
            affiliated_parties=normalize_parties(parties) or frozenset({"AUTRE"}),
            geographic_level=GeographicLevel(record.get("level") or record.get("geographic_level") or "national"),
            city=record.get("city") or "",
            percentage_of_expressed=float(percentage),
            amount=float(amount) if amount is not None else 0.0,
            poll_context=context
        )
