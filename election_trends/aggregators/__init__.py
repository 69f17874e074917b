"""
ElectionTrends - Aggregators Package

Two-stage series aggregation (context collapse, cross-context reconciliation).
"""

from election_trends.aggregators.series_aggregator import (
    AggregationResult,
    ContextCollapser,
    ContextReconciler,
    ContextTotal,
    FamilyResolver,
    SeriesAggregator,
    aggregate
)

__all__ = [
    "AggregationResult",
    "ContextCollapser",
    "ContextReconciler",
    "ContextTotal",
    "FamilyResolver",
    "SeriesAggregator",
    "aggregate"
]
