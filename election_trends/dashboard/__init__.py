"""
ElectionTrends - Dashboard Package

Dash/Plotly dashboard and the data provider shared with the REST API.
"""

from election_trends.dashboard.app import TrendsDashboard, build_search_query
from election_trends.dashboard.data_provider import TrendsDataProvider

__all__ = ["TrendsDashboard", "TrendsDataProvider", "build_search_query"]
