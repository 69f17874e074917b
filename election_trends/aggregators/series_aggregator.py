"""
ElectionTrends - Series Aggregator

Turns candidate-level observations into per-day chart series.

Two-stage grouping:
- Stage 1 (context collapse): inside one result, or one poll hypothesis,
  the shares of every candidate falling in the same group are added up.
  They are mutually exclusive vote shares of one snapshot.
- Stage 2 (cross-context reconciliation): several polls (or hypotheses)
  landing on the same day are alternative estimates of the same quantity,
  so their Stage-1 totals are averaged, never summed.
"""

import logging
import statistics
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from election_trends.models.observations import Observation, ObservationKind, PoliticalFamily
from election_trends.models.series import GroupBy, SeriesPoint
from election_trends.utils.errors import DataInconsistency


logger = logging.getLogger(__name__)

Predicate = Callable[[Observation], bool]
SeriesKey = Tuple[date, ObservationKind, str, str]
ContextKey = Tuple[date, ObservationKind, str, Optional[str], Optional[str], str, PoliticalFamily]
ReconcileKey = Tuple[date, ObservationKind, str, str, PoliticalFamily]


@dataclass
class ContextTotal:
    """
    Stage-1 row: one group's combined share inside one context.

    Primary Key: date + kind + election_id + poll_id + hypothesis_label + group_key
    """
    date: date
    kind: ObservationKind
    election_id: str
    poll_id: Optional[str]
    hypothesis_label: Optional[str]
    group_key: str
    political_family: PoliticalFamily
    percentage_sum: float = 0.0
    amount_sum: float = 0.0
    observation_count: int = 0

    @property
    def reconcile_key(self) -> ReconcileKey:
        """Stage-2 partition key (the context identifiers dropped)."""
        return (self.date, self.kind, self.election_id, self.group_key, self.political_family)


@dataclass
class AggregationResult:
    """Output of one aggregation run: sorted points plus soft data findings."""
    points: List[SeriesPoint] = field(default_factory=list)
    inconsistencies: List[DataInconsistency] = field(default_factory=list)
    observation_count: int = 0
    context_count: int = 0

    def to_dicts(self) -> List[dict]:
        """Convert points to dictionaries for API consumption."""
        return [point.to_dict() for point in self.points]


class FamilyResolver:
    """
    Picks the political family carried by each series.

    The first family encountered (in input order) for a
    (date, kind, election_id, group_key) series wins. Later observations
    with another family are folded into that series and reported.
    """

    def __init__(self):
        self._families: Dict[SeriesKey, PoliticalFamily] = {}
        self._reported: Dict[Tuple[SeriesKey, PoliticalFamily], DataInconsistency] = {}

    def resolve(self, observation: Observation, group_key: str) -> PoliticalFamily:
        """Return the family the observation is counted under."""
        series_key = (observation.date, observation.kind, observation.election_id, group_key)
        kept = self._families.setdefault(series_key, observation.political_family)

        if kept != observation.political_family:
            report_key = (series_key, observation.political_family)
            if report_key not in self._reported:
                self._reported[report_key] = DataInconsistency(
                    date=observation.date,
                    kind=observation.kind.value,
                    election_id=observation.election_id,
                    group_key=group_key,
                    kept_family=kept.value,
                    conflicting_family=observation.political_family.value
                )
        return kept

    @property
    def inconsistencies(self) -> List[DataInconsistency]:
        return list(self._reported.values())


class ContextCollapser:
    """
    Stage 1: sums shares of the same group within one context.

    A context is a (date, kind, election_id, poll_id, hypothesis_label)
    tuple: an official result, or one hypothesis of one poll.
    """

    def collapse(
        self,
        observations: Iterable[Observation],
        group_by: GroupBy,
        resolver: FamilyResolver
    ) -> List[ContextTotal]:
        """
        Collapse observations into one total per (context, group).

        Args:
            observations: Already-filtered observations, in input order
            group_by: Grouping dimension
            resolver: Family resolver shared with the caller

        Returns:
            Context totals in first-seen order
        """
        totals: Dict[ContextKey, ContextTotal] = {}

        for observation in observations:
            group_key = group_by.key_for(observation)
            family = resolver.resolve(observation, group_key)
            key = (
                observation.date,
                observation.kind,
                observation.election_id,
                observation.poll_id,
                observation.hypothesis_label,
                group_key,
                family
            )

            total = totals.get(key)
            if total is None:
                total = ContextTotal(
                    date=observation.date,
                    kind=observation.kind,
                    election_id=observation.election_id,
                    poll_id=observation.poll_id,
                    hypothesis_label=observation.hypothesis_label,
                    group_key=group_key,
                    political_family=family
                )
                totals[key] = total

            total.percentage_sum += observation.percentage_of_expressed
            total.amount_sum += observation.amount
            total.observation_count += 1

        return list(totals.values())


class ContextReconciler:
    """
    Stage 2: averages Stage-1 totals across contexts of the same day.

    For results there is normally one context per day, so the average is
    the value itself.
    """

    def reconcile(self, totals: Iterable[ContextTotal]) -> List[SeriesPoint]:
        """
        Average context totals sharing (date, kind, election_id, group_key, family).

        Args:
            totals: Stage-1 rows

        Returns:
            One SeriesPoint per partition, in first-seen order (unsorted)
        """
        grouped: Dict[ReconcileKey, List[ContextTotal]] = {}
        for total in totals:
            grouped.setdefault(total.reconcile_key, []).append(total)

        points = []
        for (day, kind, election_id, group_key, family), contexts in grouped.items():
            points.append(SeriesPoint(
                date=day,
                kind=kind,
                election_id=election_id,
                group_key=group_key,
                political_family=family,
                value=statistics.fmean(context.percentage_sum for context in contexts),
                amount=statistics.fmean(context.amount_sum for context in contexts),
                context_count=len(contexts)
            ))
        return points


class SeriesAggregator:
    """
    Facade for the aggregation pipeline.

    filter -> ContextCollapser -> ContextReconciler -> sort by date.
    Pure: the same input always yields the same output, and no state is
    kept between calls.
    """

    def __init__(self):
        self.collapser = ContextCollapser()
        self.reconciler = ContextReconciler()
        logger.debug("SeriesAggregator initialized")

    def run(
        self,
        observations: Iterable[Observation],
        query_filter: Optional[Predicate] = None,
        group_by: Union[GroupBy, str, None] = GroupBy.POLITICAL_FAMILY
    ) -> AggregationResult:
        """
        Aggregate observations and report data-quality findings.

        Args:
            observations: Raw observations
            query_filter: Predicate selecting observations (None keeps all)
            group_by: Grouping dimension or its wire name

        Returns:
            AggregationResult with points sorted ascending by date

        Raises:
            InvalidQuery: If group_by is malformed
        """
        dimension = GroupBy.parse(group_by)

        selected = [
            observation for observation in observations
            if query_filter is None or query_filter(observation)
        ]

        resolver = FamilyResolver()
        totals = self.collapser.collapse(selected, dimension, resolver)
        points = self.reconciler.reconcile(totals)

        # sorted() is stable: same-day points keep first-seen group order
        points = sorted(points, key=lambda point: point.date)

        inconsistencies = resolver.inconsistencies
        for inconsistency in inconsistencies:
            logger.warning(f"[WARN] Data inconsistency: {inconsistency.describe()}")

        logger.debug(
            f"Aggregated {len(selected)} observations into {len(totals)} contexts "
            f"and {len(points)} points (group_by={dimension.value})"
        )

        return AggregationResult(
            points=points,
            inconsistencies=inconsistencies,
            observation_count=len(selected),
            context_count=len(totals)
        )

    def aggregate(
        self,
        observations: Iterable[Observation],
        query_filter: Optional[Predicate] = None,
        group_by: Union[GroupBy, str, None] = GroupBy.POLITICAL_FAMILY
    ) -> List[SeriesPoint]:
        """Aggregate observations into sorted series points."""
        return self.run(observations, query_filter, group_by).points


def aggregate(
    observations: Iterable[Observation],
    query_filter: Optional[Predicate] = None,
    group_by: Union[GroupBy, str, None] = GroupBy.POLITICAL_FAMILY
) -> List[SeriesPoint]:
    """Module-level shortcut for SeriesAggregator().aggregate()."""
    return SeriesAggregator().aggregate(observations, query_filter, group_by)
