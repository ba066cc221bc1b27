"""
Clients for the upstream services: the Event Bus archive and the artifact
registry that publishes the list of servable sources.
"""
import asyncio
import logging
from typing import Any, Dict, FrozenSet, Iterable, Optional

import aiohttp
import jwt

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """The Event Bus was unreachable or answered with a non-200 status"""


def build_token(secrets: Iterable[str]) -> str:
    """
    Sign the bearer token used against the Event Bus.

    A wildcard subject is enough to read the archive. The first secret
    signs; any others are only accepted by the verifying side.
    """
    secrets = list(secrets)
    if not secrets:
        raise ValueError("At least one JWT secret is required")
    return jwt.encode({"sub": "*"}, secrets[0], algorithm="HS256")


class EventBusClient:
    """
    Reads daily archives from the Event Bus.

    One aiohttp session is shared by every request in the process.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 900.0,
        session: Optional[aiohttp.ClientSession] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    def archive_url(self, date: str) -> str:
        return f"{self.base_url}/events/archive/{date}"

    async def fetch_archive(self, date: str) -> Dict[str, Any]:
        """
        Download one day's archive.

        Args:
            date: Day as YYYY-MM-DD

        Returns:
            Parsed archive body, normally {"events": [...]}

        Raises:
            UpstreamError: on connection failure, any status but 200, or a
                body that is not a JSON object
        """
        url = self.archive_url(date)
        logger.info(f"Downloading from Event Bus {url}")
        headers = {"Authorization": f"Bearer {self.token}"}
        try:
            async with self._get_session().get(url, headers=headers, timeout=self.timeout) as resp:
                if resp.status != 200:
                    logger.error(f"Error from Event Bus: status {resp.status} url: {url}")
                    raise UpstreamError("Internal error connecting to Event Bus.")
                body = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Error from Event Bus: {e!r} url: {url}")
            raise UpstreamError("Internal error connecting to Event Bus.") from e

        if not isinstance(body, dict):
            logger.error(f"Error from Event Bus: expected a JSON object, got {type(body).__name__} url: {url}")
            raise UpstreamError("Internal error connecting to Event Bus.")
        return body

    async def close(self):
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None


def parse_sourcelist(text: str) -> FrozenSet[str]:
    """Newline separated source ids, blank lines ignored"""
    return frozenset(line.strip() for line in text.splitlines() if line.strip())


async def fetch_sourcelist(artifact_base: str, name: str, timeout: float = 60.0) -> FrozenSet[str]:
    """
    Fetch the set of source_ids we're allowed to serve.

    The list changes so rarely that it is loaded once at startup; a new
    source needs a restart.
    """
    url = f"{artifact_base.rstrip('/')}/a/{name}.txt"
    async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout)) as session:
        async with session.get(url) as resp:
            resp.raise_for_status()
            text = await resp.text()
    sources = parse_sourcelist(text)
    logger.info(f"Retrieved source names: {sorted(sources)}")
    return sources
