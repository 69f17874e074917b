"""
ElectionTrends - Import Sources

Reads import files from local paths or downloads them over HTTP.

Split into focused classes:
- AsyncSourceClient: aiohttp session, retries, bounded parallel downloads
- SourceLoader: resolves a list of sources (paths or URLs) into parsed JSON
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import aiohttp

from election_trends.utils.config import OperationalConfig
from election_trends.utils.errors import SourceError


logger = logging.getLogger(__name__)

Source = Union[str, Path]


def is_remote(source: Source) -> bool:
    """True for http(s) URLs."""
    return isinstance(source, str) and source.lower().startswith(("http://", "https://"))


class AsyncSourceClient:
    """
    Downloads JSON import sources with aiohttp.

    Responsibilities:
    - Initialize and maintain the aiohttp ClientSession
    - Retry failed downloads with a linear backoff
    - Bound concurrent downloads with a semaphore
    """

    def __init__(self, operational_config: Optional[OperationalConfig] = None):
        self.ops_config = operational_config or OperationalConfig()
        self.session: Optional[aiohttp.ClientSession] = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure aiohttp session exists, creating if needed."""
        if self.session is None or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=self.ops_config.request_timeout, connect=10)
            self.session = aiohttp.ClientSession(
                headers={"Accept": "application/json"},
                timeout=timeout
            )
            logger.debug("Created new aiohttp session")
        return self.session

    async def fetch_json_async(self, url: str) -> Any:
        """
        Download and parse one JSON document, retrying on failure.

        Raises:
            SourceError: After the last failed attempt
        """
        session = await self._ensure_session()
        last_error: Optional[Exception] = None

        for attempt in range(1, self.ops_config.max_retries + 1):
            try:
                async with session.get(url) as response:
                    response.raise_for_status()
                    text = await response.text()
                    return json.loads(text)
            except json.JSONDecodeError as error:
                # A malformed document will not get better on retry
                raise SourceError(f"Invalid JSON at {url}: {error}") from error
            except (aiohttp.ClientError, asyncio.TimeoutError) as error:
                last_error = error
                logger.warning(
                    f"[WARN] Download of {url} failed "
                    f"(attempt {attempt}/{self.ops_config.max_retries}): {error}"
                )
                if attempt < self.ops_config.max_retries:
                    await asyncio.sleep(self.ops_config.retry_delay * attempt)

        logger.error(f"[ERROR] Download of {url} failed after {self.ops_config.max_retries} attempts")
        raise SourceError(f"Cannot download {url}: {last_error}")

    async def fetch_many_async(self, urls: Sequence[str]) -> List[Any]:
        """
        Download several documents in parallel, preserving input order.

        Raises:
            SourceError: If any download fails
        """
        semaphore = asyncio.Semaphore(max(1, self.ops_config.parallel_downloads))

        async def bounded(url: str) -> Any:
            async with semaphore:
                return await self.fetch_json_async(url)

        logger.info(f"[...] Downloading {len(urls)} source(s)")
        return list(await asyncio.gather(*(bounded(url) for url in urls)))

    async def close(self) -> None:
        """Close the aiohttp session and clean up resources."""
        if self.session and not self.session.closed:
            await self.session.close()
            logger.debug("Closed aiohttp session")
        self.session = None


class SourceLoader:
    """Resolves import sources, local or remote, into parsed JSON documents."""

    def __init__(self, operational_config: Optional[OperationalConfig] = None):
        self.ops_config = operational_config or OperationalConfig()

    def read_local(self, path: Source) -> Any:
        """
        Read and parse a local JSON file.

        Raises:
            SourceError: If the file is missing or not valid JSON
        """
        file_path = Path(path)
        if not file_path.exists():
            raise SourceError(f"File not found: {file_path}")
        try:
            with open(file_path, "r", encoding="utf-8") as handle:
                return json.load(handle)
        except json.JSONDecodeError as error:
            raise SourceError(f"Invalid JSON in {file_path}: {error}") from error
        except OSError as error:
            raise SourceError(f"Cannot read {file_path}: {error}") from error

    async def _download_async(self, urls: List[str]) -> List[Any]:
        client = AsyncSourceClient(self.ops_config)
        try:
            return await client.fetch_many_async(urls)
        finally:
            await client.close()

    def load_many(self, sources: Sequence[Source]) -> List[Any]:
        """
        Load every source, downloading the remote ones in parallel.

        Returns:
            Parsed documents, in the order of the sources

        Raises:
            SourceError: If any source cannot be loaded
        """
        documents: Dict[int, Any] = {}
        remote: List[int] = []

        for index, source in enumerate(sources):
            if is_remote(source):
                remote.append(index)
            else:
                documents[index] = self.read_local(source)

        if remote:
            downloaded = asyncio.run(self._download_async([str(sources[i]) for i in remote]))
            documents.update(zip(remote, downloaded))

        return [documents[index] for index in range(len(sources))]

    def load(self, source: Source) -> Any:
        """Load a single source."""
        return self.load_many([source])[0]
