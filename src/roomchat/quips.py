"""
Quip Providers

A quip provider supplies one short humorous text on request. The node
ships an HTTP provider backed by icanhazdadjoke.com.
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from .errors import QuipProviderError

logger = logging.getLogger(__name__)

DEFAULT_QUIP_URL = "https://icanhazdadjoke.com/"
DEFAULT_QUIP_TIMEOUT = 5  # seconds
USER_AGENT = "roomchat node (websocket groupchat)"
REQUEST_HEADERS = {"Accept": "application/json", "User-Agent": USER_AGENT}


class QuipProvider:
    """Interface for quip providers."""

    async def get_quip(self) -> str:
        """
        Fetch one quip.

        Raises:
            QuipProviderError: If no quip could be obtained
        """
        raise NotImplementedError("Subclasses must implement get_quip")

    async def close(self):
        """Release any resources held by the provider."""


class HttpQuipProvider(QuipProvider):
    """
    Fetches dad jokes over HTTP.

    The endpoint must answer ``Accept: application/json`` requests with a
    ``{"joke": "..."}`` object.
    """

    def __init__(
        self,
        url: str = DEFAULT_QUIP_URL,
        timeout: float = DEFAULT_QUIP_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the provider.

        Args:
            url: Joke endpoint
            timeout: Total request timeout in seconds
            session: Optional client session to reuse; created lazily if None
        """
        self.url = url
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True
        return self._session

    async def get_quip(self) -> str:
        session = self._get_session()
        try:
            async with session.get(self.url, headers=REQUEST_HEADERS) as response:
                response.raise_for_status()
                data = await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise QuipProviderError(f"Quip request to {self.url} timed out") from e
        except (aiohttp.ClientError, ValueError) as e:
            raise QuipProviderError(f"Quip request to {self.url} failed: {e}") from e

        joke = data.get("joke") if isinstance(data, dict) else None
        if not isinstance(joke, str) or not joke:
            raise QuipProviderError("Quip response did not contain a joke")
        return joke

    async def close(self):
        if self._owns_session and self._session is not None:
            await self._session.close()
            logger.debug("Closed quip provider HTTP session")
        self._session = None
