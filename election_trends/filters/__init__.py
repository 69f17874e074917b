"""
ElectionTrends - Filters Package

Search query normalization into typed observation predicates.
"""

from election_trends.filters.normalizer import (
    FilterNormalizer,
    ObservationFilter,
    SearchRequest
)

__all__ = [
    "FilterNormalizer",
    "ObservationFilter",
    "SearchRequest"
]
