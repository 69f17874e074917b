"""
ElectionTrends - Importers Package

Bulk loading of official results and opinion polls.
"""

from election_trends.importers.polls_importer import PollsImporter, poll_election_id
from election_trends.importers.results_importer import ResultsImporter
from election_trends.importers.sources import AsyncSourceClient, SourceLoader, is_remote
from election_trends.importers.summary import ImportSummary

__all__ = [
    "AsyncSourceClient",
    "ImportSummary",
    "PollsImporter",
    "ResultsImporter",
    "SourceLoader",
    "is_remote",
    "poll_election_id",
]
