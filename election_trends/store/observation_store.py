"""
ElectionTrends - Observation Store Interface

Defines the document-store contract used by the API, the dashboard and the
import pipeline, plus an in-process implementation used for development
and tests.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional, Set

from election_trends.models.elections import Election, Poll
from election_trends.models.observations import Observation, ObservationKind


logger = logging.getLogger(__name__)

Predicate = Callable[[Observation], bool]


def _party_values(observation: Observation) -> Iterable[str]:
    return observation.affiliated_parties


# Field name (and aliases) -> values an observation contributes
DISTINCT_FIELDS: Dict[str, Callable[[Observation], Iterable[str]]] = {
    "party": _party_values,
    "affiliated_parties": _party_values,
    "political_family": lambda observation: [observation.political_family.value],
    "nuance": lambda observation: [observation.political_family.value],
    "candidate_name": lambda observation: [observation.candidate_name],
    "city": lambda observation: [observation.city],
    "election_type": lambda observation: [observation.election_type],
    "election_id": lambda observation: [observation.election_id],
}


def distinct_from(observations: Iterable[Observation], field_name: str) -> Set[str]:
    """
    Collect the distinct values of one field across observations.

    Raises:
        ValueError: If the field is not a distinct-able observation field
    """
    extractor = DISTINCT_FIELDS.get(field_name)
    if extractor is None:
        raise ValueError(
            f"Unsupported distinct field '{field_name}'; expected one of "
            f"{', '.join(sorted(DISTINCT_FIELDS))}"
        )
    values: Set[str] = set()
    for observation in observations:
        values.update(extractor(observation))
    return values


class ObservationStore(ABC):
    """
    Document store for observations, elections and polls.

    Implementations raise StoreUnavailable when the backend fails; they
    never return partial results.
    """

    # ==================== Observations ====================

    @abstractmethod
    def find(self, predicate: Optional[Predicate] = None) -> List[Observation]:
        """
        Return every stored observation accepted by the predicate.

        When the predicate is an ObservationFilter with election types, the
        backend may use them to skip whole elections before loading rows.
        """

    def distinct_values(self, field_name: str) -> Set[str]:
        """Return the distinct values of one observation field."""
        return distinct_from(self.find(), field_name)

    @abstractmethod
    def insert_observations(self, observations: Iterable[Observation]) -> int:
        """Append observations; returns the number stored."""

    @abstractmethod
    def delete_observations(
        self,
        election_ids: Optional[Iterable[str]] = None,
        kind: Optional[ObservationKind] = None
    ) -> int:
        """
        Delete observations; returns the number removed.

        Args:
            election_ids: Elections to purge (None means every election)
            kind: Only remove this kind (None means results and polls)
        """

    # ==================== Elections ====================

    @abstractmethod
    def upsert_election(self, election: Election) -> None:
        """Insert or replace election metadata."""

    @abstractmethod
    def get_election(self, election_id: str) -> Optional[Election]:
        """Return one election, or None if unknown."""

    @abstractmethod
    def list_elections(self) -> List[Election]:
        """Return every election, most recent year first."""

    # ==================== Polls ====================

    @abstractmethod
    def upsert_poll(self, poll: Poll) -> None:
        """Insert or replace poll metadata."""

    @abstractmethod
    def get_poll(self, poll_id: str) -> Optional[Poll]:
        """Return one poll, or None if unknown."""

    @abstractmethod
    def list_polls(self) -> List[Poll]:
        """Return every poll, most recent closing date first."""

    @abstractmethod
    def delete_polls(self, poll_ids: Iterable[str]) -> int:
        """Delete poll metadata; returns the number removed."""

    # ==================== Maintenance ====================

    @abstractmethod
    def is_connected(self) -> bool:
        """Check whether the backend answers."""

    @abstractmethod
    def clear_all(self) -> None:
        """Remove observations, elections and polls."""

    def get_stats(self) -> Dict[str, int]:
        """Count stored documents."""
        return {
            "observations": len(self.find()),
            "elections": len(self.list_elections()),
            "polls": len(self.list_polls())
        }

    def close(self) -> None:
        """Release backend resources."""


def sort_elections(elections: Iterable[Election]) -> List[Election]:
    return sorted(elections, key=lambda election: (-election.year, election.election_id))


def sort_polls(polls: Iterable[Poll]) -> List[Poll]:
    return sorted(polls, key=lambda poll: (poll.end_date, poll.poll_id), reverse=True)


class MemoryObservationStore(ObservationStore):
    """
    In-process store.

    Used when no Redis server is configured (STORE_BACKEND=memory) and by
    the test suite. Data lives as long as the process.
    """

    def __init__(self, observations: Optional[Iterable[Observation]] = None):
        self._lock = threading.Lock()
        self._observations: Dict[str, List[Observation]] = defaultdict(list)
        self._elections: Dict[str, Election] = {}
        self._polls: Dict[str, Poll] = {}
        if observations:
            self.insert_observations(observations)
        logger.info("[OK] In-memory observation store ready")

    def find(self, predicate: Optional[Predicate] = None) -> List[Observation]:
        with self._lock:
            rows = [
                observation
                for election_rows in self._observations.values()
                for observation in election_rows
            ]
        if predicate is None:
            return rows
        return [observation for observation in rows if predicate(observation)]

    def insert_observations(self, observations: Iterable[Observation]) -> int:
        count = 0
        with self._lock:
            for observation in observations:
                self._observations[observation.election_id].append(observation)
                count += 1
        logger.debug(f"Stored {count} observations in memory")
        return count

    def delete_observations(
        self,
        election_ids: Optional[Iterable[str]] = None,
        kind: Optional[ObservationKind] = None
    ) -> int:
        removed = 0
        with self._lock:
            targets = list(self._observations) if election_ids is None else list(election_ids)
            for election_id in targets:
                rows = self._observations.get(election_id, [])
                kept = [row for row in rows if kind is not None and row.kind != kind]
                removed += len(rows) - len(kept)
                if kept:
                    self._observations[election_id] = kept
                else:
                    self._observations.pop(election_id, None)
        return removed

    def upsert_election(self, election: Election) -> None:
        with self._lock:
            self._elections[election.election_id] = election

    def get_election(self, election_id: str) -> Optional[Election]:
        with self._lock:
            return self._elections.get(election_id)

    def list_elections(self) -> List[Election]:
        with self._lock:
            return sort_elections(self._elections.values())

    def upsert_poll(self, poll: Poll) -> None:
        with self._lock:
            self._polls[poll.poll_id] = poll

    def get_poll(self, poll_id: str) -> Optional[Poll]:
        with self._lock:
            return self._polls.get(poll_id)

    def list_polls(self) -> List[Poll]:
        with self._lock:
            return sort_polls(self._polls.values())

    def delete_polls(self, poll_ids: Iterable[str]) -> int:
        removed = 0
        with self._lock:
            for poll_id in poll_ids:
                if self._polls.pop(poll_id, None) is not None:
                    removed += 1
        return removed

    def is_connected(self) -> bool:
        return True

    def clear_all(self) -> None:
        with self._lock:
            self._observations.clear()
            self._elections.clear()
            self._polls.clear()
        logger.info("[OK] In-memory store cleared")
