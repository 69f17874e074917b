"""
ElectionTrends - Data Models Package

Dataclass models for observations, election / poll metadata and series output.
"""

from election_trends.models.observations import (
    ElectionType,
    GeographicLevel,
    Observation,
    ObservationKind,
    PoliticalFamily,
    PollContext,
    parse_iso_date
)
from election_trends.models.elections import Election, Poll, RoundData
from election_trends.models.series import GroupBy, SeriesPoint

__all__ = [
    "ElectionType",
    "GeographicLevel",
    "Observation",
    "ObservationKind",
    "PoliticalFamily",
    "PollContext",
    "parse_iso_date",
    "Election",
    "Poll",
    "RoundData",
    "GroupBy",
    "SeriesPoint"
]
