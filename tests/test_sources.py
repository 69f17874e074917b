"""
Tests for import sources

Tests local file loading and the aiohttp download client.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from election_trends.importers.sources import AsyncSourceClient, SourceLoader, is_remote
from election_trends.utils.config import OperationalConfig
from election_trends.utils.errors import SourceError


@pytest.fixture
def ops_config():
    """Create a fast operational config for testing."""
    return OperationalConfig(request_timeout=5, max_retries=2, retry_delay=0, parallel_downloads=2)


def mock_session(body: str = "[]") -> MagicMock:
    """Create a mock aiohttp session whose get() yields a response with the given body."""
    response = MagicMock()
    response.raise_for_status = MagicMock()
    response.text = AsyncMock(return_value=body)

    session = MagicMock()
    session.closed = False
    session.get.return_value.__aenter__.return_value = response
    session.get.return_value.__aexit__.return_value = False
    session.close = AsyncMock()
    return session


class TestIsRemote:
    """Tests for URL detection."""

    def test_urls(self):
        assert is_remote("https://www.data.gouv.fr/fr/datasets/r/abc")
        assert is_remote("HTTP://example.org/polls.json")

    def test_paths(self):
        assert not is_remote("data/polls.json")
        assert not is_remote("/tmp/https.json")


class TestAsyncSourceClient:
    """Tests for AsyncSourceClient."""

    @pytest.fixture
    def client(self, ops_config):
        return AsyncSourceClient(ops_config)

    @pytest.mark.asyncio
    async def test_fetch_json(self, client):
        client.session = mock_session('[{"id": 1}]')

        document = await client.fetch_json_async("https://example.org/polls.json")

        assert document == [{"id": 1}]
        client.session.get.assert_called_once_with("https://example.org/polls.json")

    @pytest.mark.asyncio
    async def test_fetch_retries_then_succeeds(self, client):
        session = mock_session('{"ok": true}')
        good = session.get.return_value
        session.get.side_effect = [aiohttp.ClientConnectionError("reset"), good]
        client.session = session

        document = await client.fetch_json_async("https://example.org/election.json")

        assert document == {"ok": True}
        assert session.get.call_count == 2

    @pytest.mark.asyncio
    async def test_fetch_gives_up_after_max_retries(self, client):
        session = mock_session()
        session.get.side_effect = asyncio.TimeoutError()
        client.session = session

        with pytest.raises(SourceError):
            await client.fetch_json_async("https://example.org/slow.json")
        assert session.get.call_count == 2

    @pytest.mark.asyncio
    async def test_invalid_json_is_not_retried(self, client):
        client.session = mock_session("<html>")

        with pytest.raises(SourceError):
            await client.fetch_json_async("https://example.org/page")
        assert client.session.get.call_count == 1

    @pytest.mark.asyncio
    async def test_fetch_many_preserves_order(self, client):
        with patch.object(client, "fetch_json_async", new_callable=AsyncMock) as mock_fetch:
            mock_fetch.side_effect = lambda url: {"url": url}

            documents = await client.fetch_many_async(["https://a", "https://b", "https://c"])

        assert [doc["url"] for doc in documents] == ["https://a", "https://b", "https://c"]

    @pytest.mark.asyncio
    async def test_close_handles_no_session(self, client):
        client.session = None
        await client.close()

    @pytest.mark.asyncio
    async def test_close_closes_session(self, client):
        session = mock_session()
        client.session = session

        await client.close()

        session.close.assert_awaited_once()
        assert client.session is None


class TestSourceLoader:
    """Tests for SourceLoader."""

    @pytest.fixture
    def loader(self, ops_config):
        return SourceLoader(ops_config)

    def test_read_local(self, loader, tmp_path):
        path = tmp_path / "election.json"
        path.write_text(json.dumps({"election_id": "presidentielle_2022"}), encoding="utf-8")

        assert loader.load(str(path)) == {"election_id": "presidentielle_2022"}

    def test_missing_file(self, loader, tmp_path):
        with pytest.raises(SourceError):
            loader.load(tmp_path / "missing.json")

    def test_invalid_json(self, loader, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(SourceError):
            loader.load(path)

    def test_load_many_mixes_local_and_remote(self, loader, tmp_path):
        path = tmp_path / "local.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with patch.object(AsyncSourceClient, "fetch_many_async", new_callable=AsyncMock) as mock_fetch:
            mock_fetch.return_value = [{"remote": True}]

            documents = loader.load_many(["https://example.org/remote.json", str(path)])

        assert documents == [{"remote": True}, [1, 2]]
        mock_fetch.assert_awaited_once_with(["https://example.org/remote.json"])
