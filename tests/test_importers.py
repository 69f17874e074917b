"""
ElectionTrends - Importer Tests

Tests for the official results and opinion poll importers, using JSON
files written to a temporary directory and the in-memory store.
"""

import json
from datetime import date

import pytest

from election_trends.importers.mappings import family_for, map_parties, normalize_candidate
from election_trends.importers.polls_importer import PollsImporter, poll_election_id, round_from_label
from election_trends.importers.results_importer import ResultsImporter
from election_trends.models.observations import Observation, ObservationKind, PoliticalFamily
from election_trends.store.observation_store import MemoryObservationStore
from election_trends.utils.errors import SourceError


def write_json(tmp_path, name: str, document) -> str:
    """Write a JSON document and return its path."""
    path = tmp_path / name
    path.write_text(json.dumps(document), encoding="utf-8")
    return str(path)


ELECTION_DOC = {
    "election_id": "presidentielle_2022",
    "election_type": "presidentielle",
    "year": 2022,
    "tour_1": {
        "tour_number": 1,
        "date": "2022-04-10",
        "inscrits_amount": 48747876,
        "votants_pourcentage_inscrits": 73.69,
        "exprimes_amount": 35132947
    }
}


def result_row(candidate: str, share: float, nuance: str = "Gauche") -> dict:
    return {
        "type": "result",
        "election_id": "presidentielle_2022_t1",
        "election_type": "presidentielle",
        "election_tour": 1,
        "date": "2022-04-10T00:00:00.000Z",
        "candidate_name": candidate,
        "party": ["PS"],
        "nuance": nuance,
        "level": "national",
        "result_pourcentage_exprime": share,
        "result_amount": 616478
    }


def nsppoll(poll_id: int, end_day: str, tours: list) -> dict:
    return {
        "id": poll_id,
        "nom_institut": "Ifop",
        "debut_enquete": "2022-03-01",
        "fin_enquete": end_day,
        "echantillon": 2000,
        "tours": tours
    }


class TestResultsImporter:
    """Tests for ResultsImporter."""

    @pytest.fixture
    def store(self):
        return MemoryObservationStore()

    @pytest.fixture
    def importer(self, store):
        return ResultsImporter(store)

    def test_import_election_and_datapoints(self, importer, store, tmp_path):
        election_path = write_json(tmp_path, "election.json", ELECTION_DOC)
        datapoints_path = write_json(tmp_path, "datapoints.json", [
            result_row("Anne HIDALGO", 1.75),
            result_row("Marine LE PEN", 23.15, nuance="Extreme droite"),
        ])

        summary = importer.import_files(election_path, datapoints_path)

        assert summary.elections_imported == 1
        assert summary.observations_imported == 2
        assert summary.error_count == 0
        assert store.get_election("presidentielle_2022").round_1.registered_amount == 48747876
        assert {obs.candidate_name for obs in store.find()} == {"Anne HIDALGO", "Marine LE PEN"}

    def test_reimport_replaces_results(self, importer, store, tmp_path):
        election_path = write_json(tmp_path, "election.json", ELECTION_DOC)
        datapoints_path = write_json(tmp_path, "datapoints.json", [result_row("Anne HIDALGO", 1.75)])

        importer.import_files(election_path, datapoints_path)
        summary = importer.import_files(election_path, datapoints_path)

        assert summary.observations_deleted == 1
        assert len(store.find()) == 1

    def test_reimport_keeps_polls(self, importer, store, tmp_path):
        election_path = write_json(tmp_path, "election.json", ELECTION_DOC)
        datapoints_path = write_json(tmp_path, "datapoints.json", [result_row("Anne HIDALGO", 1.75)])
        poll_row = dict(result_row("Anne HIDALGO", 2.0), type="poll", poll_id="1")
        store.insert_observations([Observation.from_record(poll_row)])

        importer.import_files(election_path, datapoints_path)

        kinds = sorted(obs.kind.value for obs in store.find())
        assert kinds == ["poll", "result"]

    def test_bad_rows_are_skipped(self, importer, store, tmp_path):
        election_path = write_json(tmp_path, "election.json", ELECTION_DOC)
        datapoints_path = write_json(tmp_path, "datapoints.json", [
            result_row("Anne HIDALGO", 1.75),
            result_row("Broken", 250.0),
            "not an object",
        ])

        summary = importer.import_files(election_path, datapoints_path)

        assert summary.observations_imported == 1
        assert summary.error_count == 2

    def test_missing_file(self, importer, tmp_path):
        election_path = write_json(tmp_path, "election.json", ELECTION_DOC)

        with pytest.raises(SourceError):
            importer.import_files(election_path, str(tmp_path / "missing.json"))

    def test_invalid_election_metadata(self, importer, tmp_path):
        election_path = write_json(tmp_path, "election.json", {"election_id": "x"})
        datapoints_path = write_json(tmp_path, "datapoints.json", [])

        with pytest.raises(SourceError):
            importer.import_files(election_path, datapoints_path)

    def test_datapoints_must_be_list(self, importer, store, tmp_path):
        election_path = write_json(tmp_path, "election.json", ELECTION_DOC)
        datapoints_path = write_json(tmp_path, "datapoints.json", {"rows": []})

        with pytest.raises(SourceError):
            importer.import_files(election_path, datapoints_path)
        assert store.list_elections() == []


class TestPollsImporter:
    """Tests for PollsImporter."""

    @pytest.fixture
    def store(self):
        return MemoryObservationStore()

    @pytest.fixture
    def importer(self, store):
        return PollsImporter(store)

    @pytest.fixture
    def polls_path(self, tmp_path):
        return write_json(tmp_path, "polls.json", [
            nsppoll(101, "2022-03-05", [
                {
                    "tour": "Premier tour",
                    "hypotheses": [
                        {
                            "hypothese": None,
                            "candidats": [
                                {"candidat": "Anne Hidalgo", "parti": ["Parti socialiste"], "intentions": 2.5},
                                {"candidat": "Marine Le Pen", "parti": ["Rassemblement national"], "intentions": 17},
                                {"candidat": "Eric Zemmour", "parti": [], "intentions": None},
                            ]
                        }
                    ]
                },
                {
                    "tour": "Deuxième tour",
                    "hypotheses": [
                        {
                            "hypothese": "Macron / Le Pen",
                            "candidats": [
                                {"candidat": "Emmanuel Macron", "parti": ["LRM"], "intentions": 56},
                                {"candidat": "", "parti": [], "intentions": 44},
                            ]
                        }
                    ]
                }
            ]),
            {"id": 102, "nom_institut": "Elabe"},
        ])

    def test_import_polls(self, importer, store, polls_path):
        summary = importer.import_file(polls_path, "presidentielle", 2022)

        assert summary.polls_imported == 1
        assert summary.observations_imported == 3
        assert summary.skipped == 2
        assert summary.error_count == 1
        assert store.get_poll("101").end_date == date(2022, 3, 5)

    def test_observation_conventions(self, importer, store, polls_path):
        importer.import_file(polls_path, "presidentielle", 2022)

        by_name = {obs.candidate_name: obs for obs in store.find()}
        le_pen = by_name["Marine LE PEN"]
        macron = by_name["Emmanuel MACRON"]

        assert le_pen.kind == ObservationKind.POLL
        assert le_pen.election_id == "presidentielle_2022_t1"
        assert le_pen.date == date(2022, 3, 5)
        assert le_pen.amount == pytest.approx(340.0)
        assert le_pen.affiliated_parties == frozenset({"RN"})
        assert le_pen.political_family == PoliticalFamily.FAR_RIGHT
        assert le_pen.hypothesis_label == ""
        assert macron.round == 2
        assert macron.election_id == "presidentielle_2022_t2"
        assert macron.hypothesis_label == "Macron / Le Pen"
        assert macron.affiliated_parties == frozenset({"RENAISSANCE"})

    def test_reimport_replaces_poll_observations(self, importer, store, polls_path):
        importer.import_file(polls_path, "presidentielle", 2022)
        summary = importer.import_file(polls_path, "presidentielle", 2022)

        assert summary.observations_deleted == 3
        assert len(store.find()) == 3
        assert len(store.list_polls()) == 1

    def test_unknown_election_type(self, importer, polls_path):
        with pytest.raises(SourceError):
            importer.import_file(polls_path, "senatoriale", 2023)

    def test_document_must_be_list(self, importer, tmp_path):
        path = write_json(tmp_path, "polls.json", {"polls": []})

        with pytest.raises(SourceError):
            importer.import_file(path, "presidentielle", 2022)


class TestPollHelpers:
    """Tests for poll id, round and mapping helpers."""

    def test_poll_election_id(self):
        assert poll_election_id("europeenne", 2024, 1) == "europeenne_2024_t1"

    def test_round_from_label(self):
        assert round_from_label("Premier tour") == 1
        assert round_from_label("Deuxième tour") == 2
        assert round_from_label(None) == 2

    def test_map_parties(self):
        assert map_parties(["Parti socialiste", "Place publique"]) == ["PS", "PP"]
        assert map_parties("Reconquête") == ["REC"]
        assert map_parties([]) == ["AUTRE"]
        assert map_parties(None) == ["AUTRE"]

    def test_candidate_mappings(self):
        assert normalize_candidate("Eric Zemmour") == "Éric ZEMMOUR"
        assert normalize_candidate("Unknown Person") == "Unknown Person"
        assert family_for("Philippe Poutou") == PoliticalFamily.FAR_LEFT
        assert family_for("Unknown Person") == PoliticalFamily.OTHER
