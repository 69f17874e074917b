"""
ElectionTrends - Official Results Importer

Loads one election's metadata file and its candidate datapoints file
(data.gouv.fr extraction format) into the observation store.
"""

import logging
from typing import List, Optional

from election_trends.importers.sources import Source, SourceLoader
from election_trends.importers.summary import ImportSummary
from election_trends.models.elections import Election
from election_trends.models.observations import Observation, ObservationKind
from election_trends.store.observation_store import ObservationStore
from election_trends.utils.errors import SourceError


logger = logging.getLogger(__name__)


class ResultsImporter:
    """
    Imports official results.

    Result observations already stored for the election ids found in the
    datapoints file are replaced. Rows that cannot be parsed are counted
    as errors and skipped; the rest of the file is still imported.
    """

    def __init__(self, store: ObservationStore, loader: Optional[SourceLoader] = None):
        self.store = store
        self.loader = loader or SourceLoader()

    def import_files(self, election_source: Source, datapoints_source: Source) -> ImportSummary:
        """
        Import an election and its datapoints.

        Args:
            election_source: Path or URL of the election metadata JSON
            datapoints_source: Path or URL of the datapoints JSON (a list)

        Returns:
            ImportSummary

        Raises:
            SourceError: If a file cannot be loaded or the election metadata is invalid
            StoreUnavailable: If the store fails
        """
        summary = ImportSummary(source=str(datapoints_source))
        election_doc, datapoints_doc = self.loader.load_many([election_source, datapoints_source])

        election = self.parse_election(election_doc)
        logger.info(f"[...] Importing {election.election_type} {election.year} ({election.election_id})")

        if not isinstance(datapoints_doc, list):
            raise SourceError(f"{datapoints_source} must contain a JSON list of datapoints")

        observations = self.parse_datapoints(datapoints_doc, summary)
        election_ids = sorted({observation.election_id for observation in observations})

        self.store.upsert_election(election)
        summary.elections_imported = 1

        if election_ids:
            summary.observations_deleted = self.store.delete_observations(
                election_ids, kind=ObservationKind.RESULT
            )
        summary.observations_imported = self.store.insert_observations(observations)

        logger.info(
            f"[OK] Imported {summary.observations_imported} datapoints "
            f"({summary.error_count} errors, {summary.observations_deleted} replaced)"
        )
        return summary

    def parse_election(self, document) -> Election:
        if not isinstance(document, dict):
            raise SourceError("Election metadata must be a JSON object")
        try:
            return Election.from_dict(document)
        except (KeyError, ValueError, TypeError) as error:
            raise SourceError(f"Invalid election metadata: {error}") from error

    def parse_datapoints(self, records: list, summary: ImportSummary) -> List[Observation]:
        """Parse datapoint rows, recording failures in the summary."""
        observations = []
        for index, record in enumerate(records):
            try:
                if not isinstance(record, dict):
                    raise TypeError("datapoint is not an object")
                observations.append(Observation.from_record(record))
            except (KeyError, ValueError, TypeError, AttributeError) as error:
                name = record.get("candidate_name", "?") if isinstance(record, dict) else "?"
                logger.warning(f"[WARN] Skipping datapoint #{index} ({name}): {error}")
                summary.errors.append(f"#{index} {name}: {error}")
        return observations
