"""
ElectionTrends - Dashboard Data Provider

Orchestrates store reads, filter normalization and aggregation for the
dashboard callbacks and the REST API.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from election_trends.aggregators.series_aggregator import AggregationResult, SeriesAggregator
from election_trends.filters.normalizer import FilterNormalizer
from election_trends.models.elections import Election, Poll
from election_trends.models.observations import ElectionType, Observation, PoliticalFamily
from election_trends.models.series import GroupBy
from election_trends.store.observation_store import ObservationStore
from election_trends.utils.errors import InvalidQuery


logger = logging.getLogger(__name__)


class TrendsDataProvider:
    """
    Data provider for the Election Trends dashboard and API.

    Every read goes to the store first; aggregation only starts once the
    store call has returned, so a store failure never yields partial series.
    """

    def __init__(
        self,
        store: ObservationStore,
        normalizer: Optional[FilterNormalizer] = None,
        aggregator: Optional[SeriesAggregator] = None
    ):
        """
        Initialize the data provider.

        Args:
            store: Observation store
            normalizer: Query normalizer (default: political-family grouping)
            aggregator: Series aggregator
        """
        self.store = store
        self.normalizer = normalizer or FilterNormalizer()
        self.aggregator = aggregator or SeriesAggregator()
        logger.debug("TrendsDataProvider initialized")

    # ==================== Series ====================

    def run_search(self, query: Optional[Mapping[str, Any]]) -> AggregationResult:
        """
        Normalize a query, load matching observations and aggregate them.

        Raises:
            InvalidQuery: If the query is malformed (before any store access)
            StoreUnavailable: If the store fails
        """
        request = self.normalizer.normalize_request(query)
        observations = self.store.find(request.filter)
        result = self.aggregator.run(observations, request.filter, request.group_by)

        logger.info(
            f"[OK] Search returned {len(result.points)} points from "
            f"{result.observation_count} observations (group_by={request.group_by.value})"
        )
        if result.inconsistencies:
            logger.warning(
                f"[WARN] {len(result.inconsistencies)} family conflicts in search results"
            )
        return result

    def search(self, query: Optional[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        """Return aggregated series points as dictionaries."""
        return self.run_search(query).to_dicts()

    def get_filter_options(self) -> Dict[str, List[str]]:
        """
        Get the values offered by the dashboard / API filter widgets.

        Returns:
            Sorted distinct parties, families, candidates, non-empty
            cities and election types
        """
        families = self.store.distinct_values("political_family")
        election_types = self.store.distinct_values("election_type")

        return {
            "parties": sorted(self.store.distinct_values("party")),
            "political_families": [family.value for family in PoliticalFamily if family.value in families],
            "candidates": sorted(self.store.distinct_values("candidate_name")),
            "cities": sorted(city for city in self.store.distinct_values("city") if city),
            "election_types": [member.value for member in ElectionType if member.value in election_types]
        }

    # ==================== Observations ====================

    def insert_datapoints(self, records: Iterable[Mapping[str, Any]]) -> int:
        """
        Parse and store datapoint records, all or nothing.

        Raises:
            InvalidQuery: If any record cannot be parsed (nothing is stored)
        """
        observations: List[Observation] = []
        for index, record in enumerate(records):
            if not isinstance(record, Mapping):
                raise InvalidQuery(f"Datapoint #{index} must be an object", "dataPoints")
            try:
                observations.append(Observation.from_record(dict(record)))
            except (KeyError, ValueError, TypeError, AttributeError) as error:
                raise InvalidQuery(f"Datapoint #{index} is invalid: {error}", "dataPoints")

        return self.store.insert_observations(observations)

    def delete_all(self) -> int:
        """Delete every observation."""
        removed = self.store.delete_observations()
        logger.info(f"[OK] Deleted {removed} observations")
        return removed

    # ==================== Metadata ====================

    def list_elections(self) -> List[Election]:
        return self.store.list_elections()

    def get_election(self, election_id: str) -> Optional[Election]:
        return self.store.get_election(election_id)

    def list_polls(self) -> List[Poll]:
        return self.store.list_polls()

    def get_poll(self, poll_id: str) -> Optional[Poll]:
        return self.store.get_poll(poll_id)

    @property
    def default_group_by(self) -> GroupBy:
        return self.normalizer.default_group_by

    def health(self) -> Dict[str, Any]:
        """Report store connectivity for the /health endpoint."""
        connected = self.store.is_connected()
        return {
            "status": "healthy" if connected else "degraded",
            "store": type(self.store).__name__,
            "store_connected": connected
        }
