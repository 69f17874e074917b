"""
ElectionTrends - Command Line Tests

Tests for argument parsing and the main entry point, run against the
in-memory store backend.
"""

import json
import logging
from unittest.mock import patch

import pytest

from election_trends.main import create_dashboard, main, parse_arguments
from election_trends.store.observation_store import MemoryObservationStore
from election_trends.utils.config import Config
from election_trends.utils.logging_config import LogContext, resolve_level


@pytest.fixture
def memory_env(monkeypatch, tmp_path):
    """Run main() in a temp directory with the memory backend and logging stubbed."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    with patch("election_trends.main.setup_logging"):
        yield tmp_path


class TestParseArguments:
    """Tests for parse_arguments."""

    def test_serve(self):
        args = parse_arguments(["--serve", "-v"])
        assert args.serve is True
        assert args.verbose is True

    def test_import_results_takes_two_files(self):
        args = parse_arguments(["--import-results", "election.json", "datapoints.json"])
        assert args.import_results == ["election.json", "datapoints.json"]

    def test_import_polls_requires_type_and_year(self):
        with pytest.raises(SystemExit):
            parse_arguments(["--import-polls", "polls.json"])

    def test_import_polls(self):
        args = parse_arguments([
            "--import-polls", "polls.json", "--election-type", "presidentielle", "--year", "2022"
        ])
        assert (args.import_polls, args.election_type, args.year) == ("polls.json", "presidentielle", 2022)

    def test_modes_are_exclusive(self):
        with pytest.raises(SystemExit):
            parse_arguments(["--serve", "--clear"])

    def test_mode_is_required(self):
        with pytest.raises(SystemExit):
            parse_arguments([])


class TestMain:
    """Tests for main() exit codes."""

    def test_connectivity_check(self, memory_env):
        assert main(["--test"]) == 0

    def test_clear(self, memory_env):
        assert main(["--clear"]) == 0

    def test_import_results(self, memory_env):
        election = memory_env / "election.json"
        election.write_text(json.dumps({
            "election_id": "europeennes_2019",
            "election_type": "europeenne",
            "year": 2019,
            "tour_1": {"tour_number": 1, "date": "2019-05-26"}
        }), encoding="utf-8")
        datapoints = memory_env / "datapoints.json"
        datapoints.write_text(json.dumps([{
            "type": "result",
            "election_id": "europeennes_2019",
            "election_type": "europeenne",
            "date": "2019-05-26",
            "candidate_name": "Jordan BARDELLA",
            "party": ["RN"],
            "nuance": "Extreme droite",
            "level": "national",
            "result_pourcentage_exprime": 23.34
        }]), encoding="utf-8")

        assert main(["--import-results", str(election), str(datapoints)]) == 0

    def test_import_missing_file_fails(self, memory_env):
        assert main(["--import-results", "missing.json", "missing.json"]) == 1

    def test_invalid_configuration(self, memory_env, monkeypatch):
        monkeypatch.setenv("STORE_BACKEND", "sqlite")
        assert main(["--test"]) == 1

    def test_invalid_configuration_logs_to_console_only(self, memory_env, monkeypatch):
        monkeypatch.setenv("STORE_BACKEND", "sqlite")

        with patch("election_trends.main.setup_logging") as mock_setup:
            main(["--test"])

        mock_setup.assert_called_once_with(level=logging.INFO, log_file=None)
        assert not (memory_env / "data").exists()


class TestCreateDashboard:
    """Tests for application wiring."""

    def test_default_group_by_from_config(self):
        config = Config(load_environment=False)
        config.aggregation.default_group_by = "party"

        dashboard = create_dashboard(config, store=MemoryObservationStore())

        assert dashboard.data_provider.default_group_by.value == "party"


class TestLoggingHelpers:
    """Tests for logging helpers."""

    def test_resolve_level(self):
        assert resolve_level("debug") == logging.DEBUG
        assert resolve_level(logging.WARNING) == logging.WARNING
        with pytest.raises(ValueError):
            resolve_level("chatty")

    def test_log_context_restores_level(self):
        target = logging.getLogger("election_trends.aggregators")
        target.setLevel(logging.INFO)

        with LogContext("election_trends.aggregators", "DEBUG") as scoped:
            assert scoped.level == logging.DEBUG

        assert target.level == logging.INFO
