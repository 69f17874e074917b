"""
ElectionTrends - Election & Poll Metadata Models

Election-level turnout figures per round, and opinion poll metadata.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from election_trends.models.observations import ElectionType, parse_iso_date


ELECTION_LEVELS = ("national", "municipal", "regional", "departmental")

# Open-data field name -> RoundData attribute
_ROUND_FIELD_MAP = {
    "inscrits_amount": "registered_amount",
    "abstentions_amount": "abstentions_amount",
    "abstentions_pourcentage_inscrits": "abstentions_pct_registered",
    "votants_amount": "voters_amount",
    "votants_pourcentage_inscrits": "voters_pct_registered",
    "blancs_amount": "blank_amount",
    "blancs_pourcentage_inscrits": "blank_pct_registered",
    "blancs_pourcentage_votants": "blank_pct_voters",
    "nuls_amount": "null_amount",
    "nuls_pourcentage_inscrits": "null_pct_registered",
    "nuls_pourcentage_votants": "null_pct_voters",
    "exprimes_amount": "expressed_amount",
    "exprimes_pourcentage_inscrits": "expressed_pct_registered",
    "exprimes_pourcentage_votants": "expressed_pct_voters",
}


@dataclass
class RoundData:
    """
    Turnout figures for one round of an election.

    Amounts are counts; *_pct_* values are percentages (0-100).
    """
    round_number: int
    date: date
    registered_amount: int = 0
    abstentions_amount: int = 0
    abstentions_pct_registered: float = 0.0
    voters_amount: int = 0
    voters_pct_registered: float = 0.0
    blank_amount: int = 0
    blank_pct_registered: float = 0.0
    blank_pct_voters: float = 0.0
    null_amount: int = 0
    null_pct_registered: float = 0.0
    null_pct_voters: float = 0.0
    expressed_amount: int = 0
    expressed_pct_registered: float = 0.0
    expressed_pct_voters: float = 0.0

    def __post_init__(self):
        if self.round_number not in (1, 2):
            raise ValueError(f"Round number must be 1 or 2, got {self.round_number}")
        for name, value in self.to_dict().items():
            if name.endswith("_amount") and value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")
            if "_pct_" in name and not 0.0 <= value <= 100.0:
                raise ValueError(f"{name} must be within 0-100, got {value}")

    def to_dict(self) -> dict:
        """Convert to dictionary for storage and API output."""
        return {
            "round_number": self.round_number,
            "date": self.date.isoformat(),
            "registered_amount": self.registered_amount,
            "abstentions_amount": self.abstentions_amount,
            "abstentions_pct_registered": self.abstentions_pct_registered,
            "voters_amount": self.voters_amount,
            "voters_pct_registered": self.voters_pct_registered,
            "blank_amount": self.blank_amount,
            "blank_pct_registered": self.blank_pct_registered,
            "blank_pct_voters": self.blank_pct_voters,
            "null_amount": self.null_amount,
            "null_pct_registered": self.null_pct_registered,
            "null_pct_voters": self.null_pct_voters,
            "expressed_amount": self.expressed_amount,
            "expressed_pct_registered": self.expressed_pct_registered,
            "expressed_pct_voters": self.expressed_pct_voters
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoundData":
        """
        Build RoundData from either the stored form or the open-data form.

        The open-data form uses French keys (inscrits_amount,
        votants_pourcentage_inscrits, ...) and 'tour_number'.
        """
        values: Dict[str, Any] = {}
        for key, value in data.items():
            attribute = _ROUND_FIELD_MAP.get(key, key)
            if attribute in _ROUND_ATTRIBUTES:
                values[attribute] = value

        round_number = data.get("round_number", data.get("tour_number"))
        if round_number is None:
            raise KeyError("tour_number")

        values["round_number"] = int(round_number)
        values["date"] = parse_iso_date(data["date"])
        return cls(**values)


_ROUND_ATTRIBUTES = set(RoundData.__dataclass_fields__)


@dataclass
class Election:
    """
    Election metadata.

    Primary Key: election_id
    """
    election_id: str
    election_type: str
    year: int
    round_1: RoundData
    round_2: Optional[RoundData] = None
    level: str = "national"
    location: str = ""
    source: str = "data.gouv.fr"

    def __post_init__(self):
        ElectionType(self.election_type)
        if self.level not in ELECTION_LEVELS:
            raise ValueError(f"Election level must be one of {', '.join(ELECTION_LEVELS)}, got '{self.level}'")

    @property
    def rounds(self) -> List[RoundData]:
        """Rounds held, in order."""
        return [r for r in (self.round_1, self.round_2) if r is not None]

    def to_dict(self) -> dict:
        """Convert to dictionary for storage and API output."""
        return {
            "election_id": self.election_id,
            "election_type": self.election_type,
            "year": self.year,
            "level": self.level,
            "location": self.location,
            "round_1": self.round_1.to_dict(),
            "round_2": self.round_2.to_dict() if self.round_2 else None,
            "source": self.source
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Election":
        """
        Build an Election from the stored form or the open-data form.

        The open-data form names rounds 'tour_1' / 'tour_2'.
        """
        first_round = data.get("round_1", data.get("tour_1"))
        if first_round is None:
            raise KeyError("tour_1")
        second_round = data.get("round_2", data.get("tour_2"))

        return cls(
            election_id=data["election_id"],
            election_type=data["election_type"],
            year=int(data["year"]),
            level=data.get("level") or "national",
            location=data.get("location") or "",
            round_1=RoundData.from_dict(first_round),
            round_2=RoundData.from_dict(second_round) if second_round else None,
            source=data.get("source") or "data.gouv.fr"
        )


@dataclass
class Poll:
    """
    Opinion poll metadata.

    Primary Key: poll_id
    """
    poll_id: str
    institute: str
    start_date: date
    end_date: date
    sample_size: int
    election_type: str
    year: int
    rolling: bool = False
    media: bool = False
    sponsor: str = ""
    link: str = ""
    population: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary for storage and API output."""
        return {
            "poll_id": self.poll_id,
            "institute": self.institute,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "sample_size": self.sample_size,
            "election_type": self.election_type,
            "year": self.year,
            "rolling": self.rolling,
            "media": self.media,
            "sponsor": self.sponsor,
            "link": self.link,
            "population": self.population
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Poll":
        """Rebuild a Poll from its stored dictionary form."""
        return cls(
            poll_id=data["poll_id"],
            institute=data["institute"],
            start_date=parse_iso_date(data["start_date"]),
            end_date=parse_iso_date(data["end_date"]),
            sample_size=int(data["sample_size"]),
            election_type=data["election_type"],
            year=int(data["year"]),
            rolling=bool(data.get("rolling", False)),
            media=bool(data.get("media", False)),
            sponsor=data.get("sponsor") or "",
            link=data.get("link") or "",
            population=data.get("population") or ""
        )

    @classmethod
    def from_nsppolls(cls, data: Dict[str, Any], election_type: str, year: int) -> "Poll":
        """
        Create Poll metadata from an NSPPolls-format poll entry.

        Args:
            data: Poll dictionary (id, nom_institut, debut_enquete, fin_enquete, ...)
            election_type: Election type the poll belongs to
            year: Election year

        Returns:
            Poll instance
        """
        return cls(
            poll_id=str(data["id"]),
            institute=data["nom_institut"],
            start_date=parse_iso_date(data["debut_enquete"]),
            end_date=parse_iso_date(data["fin_enquete"]),
            sample_size=int(data.get("echantillon") or 0),
            election_type=ElectionType(election_type).value,
            year=int(year),
            rolling=bool(data.get("rolling", False)),
            media=bool(data.get("media", False)),
            sponsor=data.get("commanditaire") or "",
            link=data.get("lien") or "",
            population=data.get("population") or ""
        )
