"""
ElectionTrends - API Package

REST endpoints served next to the dashboard.
"""

from election_trends.api.routes import create_api_blueprint

__all__ = ["create_api_blueprint"]
