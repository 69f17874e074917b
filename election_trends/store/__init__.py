"""
ElectionTrends - Store Package

Document store for observations, elections and polls.
"""

from election_trends.store.factory import create_store
from election_trends.store.observation_store import (
    MemoryObservationStore,
    ObservationStore,
    distinct_from
)
from election_trends.store.redis_store import RedisObservationStore

__all__ = [
    "ObservationStore",
    "MemoryObservationStore",
    "RedisObservationStore",
    "create_store",
    "distinct_from",
]
