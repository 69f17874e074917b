"""
ElectionTrends - French Election Results & Opinion Poll Trends

This package stores French election results and opinion polls, and serves
aggregated time series to a charting dashboard and a REST API.
"""

__version__ = "26.10.19"
__author__ = "ElectionTrends Maintainers"
