"""
ElectionTrends - Store Factory

Builds the configured observation store backend.
"""

import logging

from election_trends.store.observation_store import MemoryObservationStore, ObservationStore
from election_trends.store.redis_store import RedisObservationStore
from election_trends.utils.config import StoreConfig


logger = logging.getLogger(__name__)


def create_store(store_config: StoreConfig) -> ObservationStore:
    """
    Create the observation store named by the configuration.

    Args:
        store_config: Store section of the application config

    Returns:
        RedisObservationStore or MemoryObservationStore

    Raises:
        StoreUnavailable: If the Redis backend is selected but unreachable
    """
    if store_config.backend == "memory":
        logger.warning("[WARN] Using in-memory store; data is lost on restart")
        return MemoryObservationStore()

    return RedisObservationStore(
        redis_url=store_config.redis_url,
        key_prefix=store_config.key_prefix
    )
