"""
ElectionTrends - Configuration Management

This module handles loading and validating configuration from environment variables
and an optional .env file.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


STORE_BACKENDS = ("redis", "memory")


@dataclass
class StoreConfig:
    """Configuration for the observation store."""
    backend: str = "redis"
    redis_url: str = "redis://localhost:6379"
    key_prefix: str = "electiontrends"


@dataclass
class ServerConfig:
    """Configuration for the dashboard / API web server."""
    host: str = "127.0.0.1"
    port: int = 8050
    debug: bool = False


@dataclass
class AggregationConfig:
    """Configuration for the series aggregation defaults."""
    default_group_by: str = "politicalFamily"


@dataclass
class OperationalConfig:
    """Configuration for remote source downloads during imports."""
    request_timeout: float = 60.0
    max_retries: int = 3
    retry_delay: float = 1.0
    parallel_downloads: int = 4


@dataclass
class Config:
    """
    Main configuration class that aggregates all configuration sections.

    Loads configuration from environment variables with .env file support.
    """
    store: StoreConfig = field(default_factory=StoreConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    aggregation: AggregationConfig = field(default_factory=AggregationConfig)
    operational: OperationalConfig = field(default_factory=OperationalConfig)

    # Paths
    data_dir: Path = field(default_factory=lambda: Path("data"))
    log_dir: Path = field(default_factory=lambda: Path("data/logs"))

    # Skip environment loading (tests build sections by hand)
    load_environment: bool = True

    def __post_init__(self):
        """Load configuration from environment after initialization."""
        if not self.load_environment:
            return

        env_file = Path(".env")
        if env_file.exists():
            load_dotenv(env_file)

        backend = os.getenv("STORE_BACKEND", "redis").lower()
        if backend not in STORE_BACKENDS:
            raise ValueError(
                f"STORE_BACKEND must be one of {', '.join(STORE_BACKENDS)}, got '{backend}'"
            )

        self.store = StoreConfig(
            backend=backend,
            redis_url=self._build_redis_url(),
            key_prefix=os.getenv("STORE_KEY_PREFIX", "electiontrends")
        )

        self.server = ServerConfig(
            host=os.getenv("DASH_HOST", "127.0.0.1"),
            port=int(os.getenv("DASH_PORT", "8050")),
            debug=self._get_bool_env("DASH_DEBUG", False)
        )

        self.aggregation = AggregationConfig(
            default_group_by=os.getenv("DEFAULT_GROUP_BY", "politicalFamily")
        )

        self.operational = OperationalConfig(
            request_timeout=float(os.getenv("REQUEST_TIMEOUT", "60")),
            max_retries=int(os.getenv("MAX_RETRIES", "3")),
            retry_delay=float(os.getenv("RETRY_DELAY", "1.0")),
            parallel_downloads=int(os.getenv("PARALLEL_DOWNLOADS", "4"))
        )

        data_dir = os.getenv("DATA_DIR")
        if data_dir:
            self.data_dir = Path(data_dir)
            self.log_dir = self.data_dir / "logs"

        self._ensure_directories()

    def _build_redis_url(self) -> str:
        """
        Resolve the Redis URL.

        Connection priority:
            1. REDIS_URL environment variable
            2. Build from REDIS_HOST and REDIS_PORT (container-friendly)
            3. Default: redis://localhost:6379
        """
        explicit_url: Optional[str] = os.getenv("REDIS_URL")
        if explicit_url:
            return explicit_url
        redis_host = os.getenv("REDIS_HOST", "localhost")
        redis_port = os.getenv("REDIS_PORT", "6379")
        return f"redis://{redis_host}:{redis_port}"

    def _get_bool_env(self, key: str, default: bool) -> bool:
        """
        Read a boolean environment variable.

        Args:
            key: Environment variable name
            default: Value used when the variable is unset

        Returns:
            True for 1/true/yes/on (case-insensitive), False otherwise
        """
        value = os.getenv(key)
        if value is None:
            return default
        return value.strip().lower() in ("1", "true", "yes", "on")

    def _ensure_directories(self) -> None:
        """Create data directories if they don't exist."""
        for directory in [self.data_dir, self.log_dir]:
            directory.mkdir(parents=True, exist_ok=True)
