"""
Singleton HTTP client with rate limiting using aiolimiter.
"""
import asyncio
from aiohttp import ClientError, ClientSession, ClientTimeout
from aiolimiter import AsyncLimiter
from typing import Dict, Optional
from loguru import logger

from places_enricher.config import HTTP_TIMEOUT_SECONDS, REQUESTS_PER_SECOND
from places_enricher.exceptions import TransportError
from places_enricher.models import HttpResponse


class HttpClient:
    """
    Singleton aiohttp client for JSON GET requests.
    Uses AsyncLimiter as a local ceiling on request rate.
    """
    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not HttpClient._initialized:
            self.timeout = ClientTimeout(total=HTTP_TIMEOUT_SECONDS)
            self.rate_limiter = AsyncLimiter(max_rate=REQUESTS_PER_SECOND, time_period=1.0)
            self._session: Optional[ClientSession] = None
            HttpClient._initialized = True

    async def _get_session(self) -> ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = ClientSession(timeout=self.timeout)
        return self._session

    async def get(self, url: str, headers: Optional[Dict[str, str]] = None) -> HttpResponse:
        """
        Send a GET request and return the status with the parsed JSON body.

        Args:
            url: Target URL, query string included.
            headers: Optional HTTP headers.

        Returns:
            HttpResponse: Status code and JSON body ({} when a non-200 body is not a JSON object).

        Raises:
            TransportError: On connection errors, timeouts, or a 200 response
                whose body is not JSON or not a JSON object.
        """
        async with self.rate_limiter:
            session = await self._get_session()
            try:
                async with session.get(url, headers=headers) as resp:
                    try:
                        body = await resp.json(content_type=None)
                    except ValueError as e:
                        if resp.status == 200:
                            raise TransportError(f"Undecodable JSON body: {e}", status=resp.status) from e
                        body = {}
                    if not isinstance(body, dict):
                        if resp.status == 200:
                            raise TransportError(
                                f"Non-object JSON body ({type(body).__name__})", status=resp.status
                            )
                        body = {}
                    return HttpResponse(status=resp.status, body=body)
            except (ClientError, asyncio.TimeoutError) as e:
                logger.debug(f"⚠️ GET request failed: {e!r}")
                raise TransportError(f"{type(e).__name__}: {e}") from e

    async def close(self):
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
