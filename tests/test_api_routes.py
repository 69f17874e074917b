"""
ElectionTrends - REST API Tests

Exercises the Flask blueprint with the Flask test client and an in-memory store.
"""

from datetime import date
from unittest.mock import MagicMock

import pytest
from flask import Flask

from election_trends.api.routes import create_api_blueprint
from election_trends.dashboard.data_provider import TrendsDataProvider
from election_trends.models.elections import Election, Poll, RoundData
from election_trends.store.observation_store import MemoryObservationStore
from election_trends.utils.errors import StoreUnavailable


def datapoint(candidate: str, share: float, nuance: str, kind: str = "result", poll_id: str = None, day: str = "2022-04-10"):
    """Helper to create a wire-format datapoint."""
    record = {
        "type": kind,
        "election_id": "presidentielle_2022_t1",
        "election_type": "presidentielle",
        "election_tour": 1,
        "date": day,
        "candidate_name": candidate,
        "party": ["PS"],
        "nuance": nuance,
        "level": "national",
        "result_pourcentage_exprime": share
    }
    if poll_id:
        record["poll_id"] = poll_id
    return record


@pytest.fixture
def store():
    return MemoryObservationStore()


@pytest.fixture
def client(store):
    """Create a Flask test client serving the blueprint."""
    app = Flask(__name__)
    app.register_blueprint(create_api_blueprint(TrendsDataProvider(store)))
    return app.test_client()


class TestDatapointRoutes:
    """Tests for /datapoint endpoints."""

    def test_insert_then_search(self, client):
        response = client.post("/datapoint", json={"dataPoints": [
            datapoint("Anne HIDALGO", 20.0, "Gauche", kind="poll", poll_id="a", day="2022-03-01"),
            datapoint("Anne HIDALGO", 20.0, "Gauche", kind="poll", poll_id="b", day="2022-03-01"),
            datapoint("Anne HIDALGO", 1.75, "Gauche"),
        ]})
        assert response.status_code == 201
        assert response.get_json() == {"ok": True, "data": {"inserted": 3}}

        response = client.post("/datapoint/search", json={"group_by": "nuance"})
        body = response.get_json()

        assert response.status_code == 200
        assert body["ok"] is True
        assert [(p["date"], p["kind"], p["value"]) for p in body["data"]] == [
            ("2022-03-01", "poll", 20.0),
            ("2022-04-10", "result", 1.75),
        ]

    def test_insert_requires_list(self, client):
        response = client.post("/datapoint", json={"dataPoints": "nope"})

        assert response.status_code == 400
        assert response.get_json()["code"] == "INVALID_BODY"

    def test_insert_is_all_or_nothing(self, client, store):
        bad = datapoint("X", 150.0, "Gauche")
        response = client.post("/datapoint", json={"dataPoints": [datapoint("A", 1.0, "Gauche"), bad]})

        assert response.status_code == 400
        assert store.find() == []

    def test_search_invalid_query(self, client):
        response = client.post("/datapoint/search", json={"group_by": "region"})

        assert response.status_code == 400
        assert response.get_json()["code"] == "INVALID_QUERY"

    def test_search_unknown_field(self, client):
        response = client.post("/datapoint/search", json={"departement": "75"})
        assert response.status_code == 400

    def test_filters(self, client):
        client.post("/datapoint", json={"dataPoints": [
            datapoint("Anne HIDALGO", 1.75, "Gauche"),
            datapoint("Marine LE PEN", 23.15, "Extreme droite"),
        ]})

        data = client.get("/datapoint/filters").get_json()["data"]

        assert data["candidates"] == ["Anne HIDALGO", "Marine LE PEN"]
        assert data["political_families"] == ["left", "far-right"]
        assert data["cities"] == []
        assert data["election_types"] == ["presidentielle"]

    def test_delete_all(self, client, store):
        client.post("/datapoint", json={"dataPoints": [datapoint("A", 1.0, "Gauche")]})

        response = client.delete("/datapoint/all")

        assert response.get_json()["data"] == {"deleted": 1}
        assert store.find() == []


class TestMetadataRoutes:
    """Tests for /election and /poll endpoints."""

    def test_elections_sorted_and_detail(self, client, store):
        for year in (2017, 2022):
            store.upsert_election(Election(
                election_id=f"presidentielle_{year}",
                election_type="presidentielle",
                year=year,
                round_1=RoundData(round_number=1, date=date(year, 4, 10))
            ))

        listing = client.get("/election").get_json()["data"]
        assert [item["year"] for item in listing] == [2022, 2017]

        detail = client.get("/election/presidentielle_2017").get_json()
        assert detail["data"]["election_id"] == "presidentielle_2017"

    def test_election_not_found(self, client):
        response = client.get("/election/missing")

        assert response.status_code == 404
        assert response.get_json() == {"ok": False, "code": "NOT_FOUND", "message": "Election 'missing' not found"}

    def test_polls(self, client, store):
        store.upsert_poll(Poll(
            poll_id="7812",
            institute="Ifop",
            start_date=date(2022, 4, 5),
            end_date=date(2022, 4, 8),
            sample_size=3000,
            election_type="presidentielle",
            year=2022
        ))

        assert client.get("/poll").get_json()["data"][0]["poll_id"] == "7812"
        assert client.get("/poll/7812").get_json()["data"]["sample_size"] == 3000
        assert client.get("/poll/0").status_code == 404


class TestFailures:
    """Tests for store failures and health."""

    def test_store_failure_returns_server_error(self):
        store = MagicMock()
        store.find.side_effect = StoreUnavailable("redis down")
        app = Flask(__name__)
        app.register_blueprint(create_api_blueprint(TrendsDataProvider(store)))

        response = app.test_client().post("/datapoint/search", json={})

        assert response.status_code == 500
        assert response.get_json() == {"ok": False, "code": "SERVER_ERROR"}

    def test_health(self, client):
        data = client.get("/health").get_json()["data"]

        assert data["status"] == "healthy"
        assert data["store"] == "MemoryObservationStore"
