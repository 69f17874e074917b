"""
ElectionTrends - Utilities Package

Configuration, logging and error types shared across the application.
"""

from election_trends.utils.config import (
    AggregationConfig,
    Config,
    OperationalConfig,
    ServerConfig,
    StoreConfig
)
from election_trends.utils.errors import (
    DataInconsistency,
    ElectionTrendsError,
    InvalidQuery,
    SourceError,
    StoreUnavailable
)
from election_trends.utils.logging_config import LogContext, setup_logging

__all__ = [
    "AggregationConfig",
    "Config",
    "OperationalConfig",
    "ServerConfig",
    "StoreConfig",
    "DataInconsistency",
    "ElectionTrendsError",
    "InvalidQuery",
    "SourceError",
    "StoreUnavailable",
    "LogContext",
    "setup_logging"
]
