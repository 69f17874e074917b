"""
ElectionTrends - Redis Observation Store

Persists observations, elections and polls in Redis.

Key layout (prefix defaults to "electiontrends"):
- {prefix}:observations:{election_id}  list of JSON observations
- {prefix}:observations:index          hash election_id -> election_type
- {prefix}:elections                   hash election_id -> JSON election
- {prefix}:polls                       hash poll_id -> JSON poll
- {prefix}:metadata:last_import        unix timestamp of the last write

Observations are partitioned by election so a search restricted to some
election types only loads the matching lists.

Redis data survives restarts only if persistence is enabled on the server
(appendonly yes, or RDB snapshots).
"""

import json
import logging
import time
from collections import defaultdict
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional

import redis

from election_trends.models.elections import Election, Poll
from election_trends.models.observations import Observation, ObservationKind
from election_trends.store.observation_store import (
    ObservationStore,
    Predicate,
    sort_elections,
    sort_polls
)
from election_trends.utils.errors import StoreUnavailable


logger = logging.getLogger(__name__)


class RedisObservationStore(ObservationStore):
    """
    Redis-backed observation store.

    Every backend failure surfaces as StoreUnavailable; nothing is retried
    here, callers decide.
    """

    DEFAULT_PREFIX = "electiontrends"

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        key_prefix: str = DEFAULT_PREFIX,
        client: Optional[Any] = None
    ):
        """
        Initialize the Redis connection.

        Args:
            redis_url: Redis connection URL
            key_prefix: Namespace for every key written by the store
            client: Pre-built client (tests inject a mock here)

        Raises:
            StoreUnavailable: If Redis does not answer PING
        """
        self.redis_url = redis_url
        self.key_prefix = key_prefix.rstrip(":")

        self.key_index = f"{self.key_prefix}:observations:index"
        self.key_elections = f"{self.key_prefix}:elections"
        self.key_polls = f"{self.key_prefix}:polls"
        self.key_last_import = f"{self.key_prefix}:metadata:last_import"

        self.client: Any = client or redis.from_url(self.redis_url, decode_responses=True)

        with self._guard("ping"):
            self.client.ping()
        logger.info(f"[OK] Connected to Redis at {self._safe_url()}")

    def _safe_url(self) -> str:
        """Return URL with password masked for logging."""
        if "@" in self.redis_url:
            return f"***@{self.redis_url.split('@')[-1]}"
        return self.redis_url

    def _observation_key(self, election_id: str) -> str:
        return f"{self.key_prefix}:observations:{election_id}"

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        """Translate redis-py failures into StoreUnavailable."""
        try:
            yield
        except redis.RedisError as error:
            logger.error(f"[ERROR] Redis {operation} failed: {error}")
            raise StoreUnavailable(f"Redis {operation} failed: {error}") from error

    def _serialize(self, data: Any) -> str:
        """Serialize data to JSON string."""
        return json.dumps(data, default=str)

    def _deserialize(self, raw: str, factory, what: str):
        """Rebuild a model from its JSON form; corrupt documents are a store failure."""
        try:
            return factory(json.loads(raw))
        except (ValueError, KeyError, TypeError) as error:
            logger.error(f"[ERROR] Corrupt {what} document in Redis: {error}")
            raise StoreUnavailable(f"Corrupt {what} document: {error}") from error

    def _touch(self, pipe) -> None:
        pipe.set(self.key_last_import, str(time.time()))

    # ==================== Observations ====================

    def find(self, predicate: Optional[Predicate] = None) -> List[Observation]:
        with self._guard("find"):
            index: Dict[str, str] = self.client.hgetall(self.key_index) or {}

            election_types = getattr(predicate, "election_types", None)
            election_ids = [
                election_id for election_id, election_type in sorted(index.items())
                if not election_types or election_type in election_types
            ]
            if not election_ids:
                return []

            pipe = self.client.pipeline(transaction=False)
            for election_id in election_ids:
                pipe.lrange(self._observation_key(election_id), 0, -1)
            batches = pipe.execute()

        observations = []
        for batch in batches:
            for raw in batch or []:
                observation = self._deserialize(raw, Observation.from_dict, "observation")
                if predicate is None or predicate(observation):
                    observations.append(observation)

        logger.debug(f"Loaded {len(observations)} observations from {len(election_ids)} elections")
        return observations

    def insert_observations(self, observations: Iterable[Observation]) -> int:
        grouped: Dict[str, List[Observation]] = defaultdict(list)
        for observation in observations:
            grouped[observation.election_id].append(observation)
        if not grouped:
            return 0

        with self._guard("insert"):
            pipe = self.client.pipeline(transaction=True)
            for election_id, rows in grouped.items():
                pipe.rpush(
                    self._observation_key(election_id),
                    *[self._serialize(row.to_dict()) for row in rows]
                )
                pipe.hset(self.key_index, election_id, rows[0].election_type)
            self._touch(pipe)
            pipe.execute()

        count = sum(len(rows) for rows in grouped.values())
        logger.info(f"[OK] Stored {count} observations across {len(grouped)} elections")
        return count

    def delete_observations(
        self,
        election_ids: Optional[Iterable[str]] = None,
        kind: Optional[ObservationKind] = None
    ) -> int:
        with self._guard("delete"):
            if election_ids is None:
                targets = sorted(self.client.hkeys(self.key_index) or [])
            else:
                targets = list(election_ids)
            if not targets:
                return 0

            read = self.client.pipeline(transaction=False)
            for election_id in targets:
                read.lrange(self._observation_key(election_id), 0, -1)
            batches = read.execute()

            removed = 0
            write = self.client.pipeline(transaction=True)
            for election_id, batch in zip(targets, batches):
                batch = batch or []
                key = self._observation_key(election_id)
                kept = []
                if kind is not None:
                    kept = [
                        raw for raw in batch
                        if self._deserialize(raw, Observation.from_dict, "observation").kind != kind
                    ]
                removed += len(batch) - len(kept)

                write.delete(key)
                if kept:
                    write.rpush(key, *kept)
                else:
                    write.hdel(self.key_index, election_id)
            self._touch(write)
            write.execute()

        scope = kind.value if kind else "all"
        logger.info(f"[OK] Deleted {removed} observations ({scope}) from {len(targets)} elections")
        return removed

    # ==================== Elections ====================

    def upsert_election(self, election: Election) -> None:
        with self._guard("upsert election"):
            self.client.hset(
                self.key_elections, election.election_id, self._serialize(election.to_dict())
            )
        logger.debug(f"Stored election {election.election_id}")

    def get_election(self, election_id: str) -> Optional[Election]:
        with self._guard("get election"):
            raw = self.client.hget(self.key_elections, election_id)
        if raw is None:
            return None
        return self._deserialize(raw, Election.from_dict, "election")

    def list_elections(self) -> List[Election]:
        with self._guard("list elections"):
            documents = self.client.hvals(self.key_elections) or []
        return sort_elections(
            self._deserialize(raw, Election.from_dict, "election") for raw in documents
        )

    # ==================== Polls ====================

    def upsert_poll(self, poll: Poll) -> None:
        with self._guard("upsert poll"):
            self.client.hset(self.key_polls, poll.poll_id, self._serialize(poll.to_dict()))

    def get_poll(self, poll_id: str) -> Optional[Poll]:
        with self._guard("get poll"):
            raw = self.client.hget(self.key_polls, poll_id)
        if raw is None:
            return None
        return self._deserialize(raw, Poll.from_dict, "poll")

    def list_polls(self) -> List[Poll]:
        with self._guard("list polls"):
            documents = self.client.hvals(self.key_polls) or []
        return sort_polls(self._deserialize(raw, Poll.from_dict, "poll") for raw in documents)

    def delete_polls(self, poll_ids: Iterable[str]) -> int:
        poll_ids = list(poll_ids)
        if not poll_ids:
            return 0
        with self._guard("delete polls"):
            return int(self.client.hdel(self.key_polls, *poll_ids) or 0)

    # ==================== Maintenance ====================

    def is_connected(self) -> bool:
        """Check if Redis connection is alive."""
        try:
            self.client.ping()
            return True
        except redis.RedisError:
            return False

    def get_last_import(self) -> Optional[float]:
        """Unix timestamp of the last observation write, if any."""
        with self._guard("get last import"):
            raw = self.client.get(self.key_last_import)
        return float(raw) if raw else None

    def clear_all(self) -> None:
        """Delete every key under this store's prefix."""
        with self._guard("clear"):
            keys = list(self.client.scan_iter(match=f"{self.key_prefix}:*"))
            if keys:
                self.client.delete(*keys)
        logger.info(f"[OK] Cleared {len(keys)} Redis keys under '{self.key_prefix}'")

    def get_stats(self) -> Dict[str, int]:
        with self._guard("stats"):
            election_ids = self.client.hkeys(self.key_index) or []
            pipe = self.client.pipeline(transaction=False)
            for election_id in election_ids:
                pipe.llen(self._observation_key(election_id))
            lengths = pipe.execute() if election_ids else []
            return {
                "observations": int(sum(lengths)),
                "elections": int(self.client.hlen(self.key_elections) or 0),
                "polls": int(self.client.hlen(self.key_polls) or 0)
            }

    def close(self) -> None:
        """Close Redis connection."""
        try:
            self.client.close()
            logger.info("Redis connection closed")
        except redis.RedisError as error:
            logger.warning(f"[WARN] Error closing Redis connection: {error}")
