"""
WSGI entry point for the ElectionTrends dashboard and REST API.

This module creates the Dash application and exposes its Flask server
for use with production WSGI servers like Gunicorn.

Usage with Gunicorn:
    gunicorn -c gunicorn_config.py wsgi:server
"""

import logging

from election_trends.main import create_dashboard
from election_trends.utils.config import Config
from election_trends.utils.logging_config import setup_logging


config = Config()
setup_logging(level=logging.DEBUG if config.server.debug else logging.INFO, log_dir=config.log_dir)
logger = logging.getLogger(__name__)


def create_app():
    """
    Create and configure the Dash application.

    Returns:
        Flask server instance (for WSGI)
    """
    logger.info("=" * 60)
    logger.info("ElectionTrends - Dashboard (Gunicorn)")
    logger.info("=" * 60)

    dashboard = create_dashboard(config)
    return dashboard.app.server


# Called when Gunicorn imports this module
server = create_app()
