"""
ElectionTrends - Opinion Polls Importer

Loads an NSPPolls-format file (polls -> tours -> hypotheses -> candidates)
into poll metadata and poll observations.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from election_trends.importers.mappings import family_for, map_parties, normalize_candidate
from election_trends.importers.sources import Source, SourceLoader
from election_trends.importers.summary import ImportSummary
from election_trends.models.elections import Poll
from election_trends.models.observations import (
    ElectionType,
    GeographicLevel,
    Observation,
    ObservationKind,
    PollContext,
    normalize_parties
)
from election_trends.store.observation_store import ObservationStore
from election_trends.utils.errors import SourceError


logger = logging.getLogger(__name__)

FIRST_ROUND_LABEL = "Premier tour"


def poll_election_id(election_type: str, year: int, round_number: int) -> str:
    """Election id poll observations are filed under, e.g. 'presidentielle_2022_t1'."""
    return f"{election_type}_{year}_t{round_number}"


def round_from_label(label: Optional[str]) -> int:
    return 1 if label == FIRST_ROUND_LABEL else 2


class PollsImporter:
    """
    Imports opinion polls.

    - Poll closing date (fin_enquete) is the reference date
    - Amount = intentions x sample size / 100
    - Candidates with no intentions or no name are skipped
    - Existing metadata of the imported polls and every poll observation
      of the election are replaced
    """

    def __init__(self, store: ObservationStore, loader: Optional[SourceLoader] = None):
        self.store = store
        self.loader = loader or SourceLoader()

    def import_file(self, source: Source, election_type: str, year: int) -> ImportSummary:
        """
        Import a polls file for one election.

        Args:
            source: Path or URL of the NSPPolls JSON list
            election_type: Election type the polls belong to
            year: Election year

        Returns:
            ImportSummary

        Raises:
            SourceError: If the file cannot be loaded or is not a list of polls
            StoreUnavailable: If the store fails
        """
        try:
            election_type = ElectionType(election_type).value
        except ValueError as error:
            raise SourceError(f"Unknown election type '{election_type}'") from error

        document = self.loader.load(source)
        if not isinstance(document, list):
            raise SourceError(f"{source} must contain a JSON list of polls")

        logger.info(f"[...] Processing {len(document)} polls for {election_type} {year}")
        summary = ImportSummary(source=str(source))
        polls, observations = self.parse_polls(document, election_type, year, summary)

        self.store.delete_polls([poll.poll_id for poll in polls])
        for poll in polls:
            self.store.upsert_poll(poll)
        summary.polls_imported = len(polls)

        election_ids = [poll_election_id(election_type, year, number) for number in (1, 2)]
        summary.observations_deleted = self.store.delete_observations(
            election_ids, kind=ObservationKind.POLL
        )
        summary.observations_imported = self.store.insert_observations(observations)

        logger.info(
            f"[OK] Imported {summary.polls_imported} polls and "
            f"{summary.observations_imported} datapoints "
            f"({summary.skipped} skipped, {summary.error_count} errors)"
        )
        return summary

    def parse_polls(
        self,
        document: List[Dict[str, Any]],
        election_type: str,
        year: int,
        summary: ImportSummary
    ) -> Tuple[List[Poll], List[Observation]]:
        """Build poll metadata and observations, recording bad entries in the summary."""
        polls: List[Poll] = []
        observations: List[Observation] = []

        for index, poll_data in enumerate(document):
            try:
                poll = Poll.from_nsppolls(poll_data, election_type, year)
            except (KeyError, ValueError, TypeError, AttributeError) as error:
                logger.warning(f"[WARN] Skipping poll #{index}: {error}")
                summary.errors.append(f"poll #{index}: {error}")
                continue

            polls.append(poll)
            observations.extend(self.parse_poll_observations(poll, poll_data, summary))

            if len(polls) % 50 == 0:
                logger.info(f"[...] Processed {len(polls)} polls")

        return polls, observations

    def parse_poll_observations(
        self,
        poll: Poll,
        poll_data: Dict[str, Any],
        summary: ImportSummary
    ) -> List[Observation]:
        """Flatten one poll's tours / hypotheses / candidates into observations."""
        observations = []

        for tour in poll_data.get("tours") or []:
            round_number = round_from_label(tour.get("tour"))
            election_id = poll_election_id(poll.election_type, poll.year, round_number)

            for hypothesis in tour.get("hypotheses") or []:
                context = PollContext(
                    poll_id=poll.poll_id,
                    hypothesis_label=hypothesis.get("hypothese") or ""
                )

                for candidate in hypothesis.get("candidats") or []:
                    intentions = candidate.get("intentions")
                    name = candidate.get("candidat")
                    if intentions is None:
                        summary.skipped += 1
                        continue
                    if not name:
                        logger.warning(f"[WARN] Missing candidate name in poll {poll.poll_id}")
                        summary.skipped += 1
                        continue

                    try:
                        share = float(intentions)
                        observations.append(Observation(
                            kind=ObservationKind.POLL,
                            election_id=election_id,
                            election_type=poll.election_type,
                            round=round_number,
                            date=poll.end_date,
                            candidate_name=normalize_candidate(name),
                            political_family=family_for(name),
                            affiliated_parties=normalize_parties(map_parties(candidate.get("parti"))),
                            geographic_level=GeographicLevel.NATIONAL,
                            percentage_of_expressed=share,
                            amount=share * poll.sample_size / 100,
                            poll_context=context
                        ))
                    except (ValueError, TypeError) as error:
                        logger.warning(f"[WARN] Invalid intentions for {name} in poll {poll.poll_id}: {error}")
                        summary.errors.append(f"poll {poll.poll_id} {name}: {error}")

        return observations
