"""
ElectionTrends - Main Entry Point

Command line entry point: serve the dashboard and API, import official
results or opinion polls, clear the store, or check connectivity.
"""

import argparse
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from election_trends.aggregators.series_aggregator import SeriesAggregator
from election_trends.dashboard.app import TrendsDashboard
from election_trends.dashboard.data_provider import TrendsDataProvider
from election_trends.filters.normalizer import FilterNormalizer
from election_trends.importers.polls_importer import PollsImporter
from election_trends.importers.results_importer import ResultsImporter
from election_trends.importers.sources import SourceLoader
from election_trends.importers.summary import ImportSummary
from election_trends.models.observations import ElectionType
from election_trends.models.series import GroupBy
from election_trends.store.factory import create_store
from election_trends.store.observation_store import ObservationStore
from election_trends.utils.config import Config
from election_trends.utils.errors import ElectionTrendsError
from election_trends.utils.logging_config import setup_logging


logger = logging.getLogger(__name__)


def parse_arguments(argv=None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        Parsed argument namespace
    """
    parser = argparse.ArgumentParser(
        description="ElectionTrends - French election results and polls dashboard",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve the dashboard and REST API
  python -m election_trends.main --serve

  # Import official results (election metadata + datapoints)
  python -m election_trends.main --import-results presidential_2022_election.json presidential_2022_datapoints.json

  # Import polls from a local file or a URL
  python -m election_trends.main --import-polls sondages_presidentielle_2022.json --election-type presidentielle --year 2022

  # Check store connectivity
  python -m election_trends.main --test
        """
    )

    mode_group = parser.add_mutually_exclusive_group(required=True)
    mode_group.add_argument(
        "--serve",
        action="store_true",
        help="Run the dashboard and REST API (development server)"
    )
    mode_group.add_argument(
        "--import-results",
        nargs=2,
        metavar=("ELECTION", "DATAPOINTS"),
        help="Import an election metadata file and its datapoints file"
    )
    mode_group.add_argument(
        "--import-polls",
        metavar="SOURCE",
        help="Import an NSPPolls-format polls file (path or URL)"
    )
    mode_group.add_argument(
        "--clear",
        action="store_true",
        help="Delete every observation, election and poll"
    )
    mode_group.add_argument(
        "--test",
        action="store_true",
        help="Test store connectivity"
    )

    parser.add_argument(
        "--election-type",
        choices=[member.value for member in ElectionType],
        help="Election type of the imported polls"
    )
    parser.add_argument(
        "--year",
        type=int,
        help="Election year of the imported polls"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging"
    )

    args = parser.parse_args(argv)
    if args.import_polls and (not args.election_type or not args.year):
        parser.error("--import-polls requires --election-type and --year")
    return args


def create_data_provider(config: Config, store: Optional[ObservationStore] = None) -> TrendsDataProvider:
    """Wire store, normalizer and aggregator together."""
    store = store or create_store(config.store)
    normalizer = FilterNormalizer(GroupBy.parse(config.aggregation.default_group_by))
    return TrendsDataProvider(store, normalizer, SeriesAggregator())


def create_dashboard(config: Config, store: Optional[ObservationStore] = None) -> TrendsDashboard:
    """
    Create the dashboard (and its REST API) for a configuration.

    Args:
        config: Application configuration
        store: Store to use instead of the configured backend

    Returns:
        TrendsDashboard instance
    """
    return TrendsDashboard(data_provider=create_data_provider(config, store))


def log_summary(summary: ImportSummary) -> None:
    logger.info("=" * 60)
    logger.info("IMPORT SUMMARY")
    for key, value in summary.to_dict().items():
        logger.info(f"  {key}: {value}")
    logger.info("=" * 60)


def run_serve(config: Config) -> bool:
    dashboard = create_dashboard(config)
    dashboard.run(host=config.server.host, port=config.server.port, debug=config.server.debug)
    return True


def run_import_results(config: Config, election_source: str, datapoints_source: str) -> bool:
    store = create_store(config.store)
    try:
        importer = ResultsImporter(store, SourceLoader(config.operational))
        summary = importer.import_files(election_source, datapoints_source)
    finally:
        store.close()
    log_summary(summary)
    return summary.observations_imported > 0


def run_import_polls(config: Config, source: str, election_type: str, year: int) -> bool:
    store = create_store(config.store)
    try:
        importer = PollsImporter(store, SourceLoader(config.operational))
        summary = importer.import_file(source, election_type, year)
    finally:
        store.close()
    log_summary(summary)
    return summary.polls_imported > 0


def run_clear(config: Config) -> bool:
    store = create_store(config.store)
    try:
        store.clear_all()
    finally:
        store.close()
    return True


def run_tests(config: Config) -> bool:
    """
    Check that the configured store answers and report its contents.

    Returns:
        True if the store is reachable
    """
    logger.info("[...] Testing store connectivity")
    try:
        store = create_store(config.store)
    except ElectionTrendsError as error:
        logger.error(f"[ERROR] Store connection failed: {error}")
        return False

    try:
        if not store.is_connected():
            logger.error("[ERROR] Store did not answer")
            return False
        stats = store.get_stats()
        logger.info(
            f"[OK] Store reachable: {stats['observations']} observations, "
            f"{stats['elections']} elections, {stats['polls']} polls"
        )
        return True
    finally:
        store.close()


def main(argv=None) -> int:
    """
    Main entry point for ElectionTrends.

    Returns:
        Exit code (0 for success, 1 for failure, 130 when interrupted)
    """
    args = parse_arguments(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO

    try:
        config = Config()
    except ValueError as error:
        setup_logging(level=log_level, log_file=None)
        logger.error(f"[ERROR] Failed to load configuration: {error}")
        return 1

    setup_logging(level=log_level, log_dir=config.log_dir)

    logger.info("=" * 60)
    logger.info("ElectionTrends - Starting")
    logger.info(f"Timestamp: {datetime.now(timezone.utc).isoformat()}")
    logger.info("=" * 60)

    success = False
    try:
        if args.test:
            success = run_tests(config)
        elif args.serve:
            success = run_serve(config)
        elif args.import_results:
            success = run_import_results(config, *args.import_results)
        elif args.import_polls:
            success = run_import_polls(config, args.import_polls, args.election_type, args.year)
        elif args.clear:
            success = run_clear(config)

    except KeyboardInterrupt:
        logger.warning("[WARN] Operation interrupted by user")
        return 130

    except ElectionTrendsError as error:
        logger.error(f"[ERROR] Operation failed: {error}")
        return 1

    logger.info("=" * 60)
    if success:
        logger.info("[DONE] ElectionTrends - Complete")
    else:
        logger.error("[ERROR] ElectionTrends - Failed")
    logger.info("=" * 60)

    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
