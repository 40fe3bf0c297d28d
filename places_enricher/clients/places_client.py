"""
Google Places Text Search lookup for a single business.

Two bounded retry layers wrap every request: transport failures (network
errors, non-200 responses, UNKNOWN_ERROR) are retried with an increasing
back-off, and the provider's own throttle (OVER_QUERY_LIMIT / HTTP 429) is
retried after a long fixed pause. Neither layer ever loops forever.
"""
import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional
from urllib.parse import quote
from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
    wait_incrementing,
    wait_random,
)

from places_enricher.config import (
    GOOGLE_PLACES_API_KEY,
    MIN_MATCH_SCORE,
    PLACES_FIELDS,
    PLACES_URL,
    RATE_LIMIT_ATTEMPTS,
    RATE_LIMIT_BACKOFF_SECONDS,
    RETRY_ATTEMPTS,
    RETRY_BACKOFF_SECONDS,
    RETRY_JITTER_SECONDS,
)
from places_enricher.clients.http_client import HttpClient
from places_enricher.exceptions import ProviderRateLimitedError, TransportError
from places_enricher.matchers import select_best_candidate
from places_enricher.models import LookupResult


class PlacesClient:
    """
    Looks up a business by name + address and returns the best matching place.

    The HTTP collaborator and the sleep function are injectable so the retry
    behaviour can be exercised without a network or real waiting.
    """

    def __init__(
        self,
        http_client=None,
        api_key: Optional[str] = GOOGLE_PLACES_API_KEY,
        min_score: float = MIN_MATCH_SCORE,
        retry_attempts: int = RETRY_ATTEMPTS,
        retry_backoff: float = RETRY_BACKOFF_SECONDS,
        retry_jitter: float = RETRY_JITTER_SECONDS,
        rate_limit_attempts: int = RATE_LIMIT_ATTEMPTS,
        rate_limit_backoff: float = RATE_LIMIT_BACKOFF_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if not api_key:
            raise ValueError("GOOGLE_PLACES_API_KEY must be set in environment or config")
        self.http_client = http_client if http_client is not None else HttpClient()
        self.api_key = api_key
        self.min_score = min_score
        self.retry_attempts = retry_attempts
        self.retry_backoff = retry_backoff
        self.retry_jitter = retry_jitter
        self.rate_limit_attempts = rate_limit_attempts
        self.rate_limit_backoff = rate_limit_backoff
        self._sleep = sleep

    def build_url(self, name: str, address: str) -> str:
        """Text Search URL for `name` + `address`, requesting the full field list."""
        query = f"{quote(name, safe='')}+{quote(address, safe='')}"
        return f"{PLACES_URL}?query={query}&fields={PLACES_FIELDS}&key={self.api_key}"

    def _log_transport_retry(self, retry_state: RetryCallState) -> None:
        logger.warning(
            f"API request failed ({retry_state.attempt_number}/{self.retry_attempts}): "
            f"{retry_state.outcome.exception()}; retrying in {retry_state.next_action.sleep:.1f}s"
        )

    def _log_rate_limit_pause(self, retry_state: RetryCallState) -> None:
        logger.warning(
            f"Rate limit exceeded ({retry_state.attempt_number}/{self.rate_limit_attempts}), "
            f"waiting {retry_state.next_action.sleep / 60:.1f} minutes..."
        )

    async def _fetch_with_retry(self, url: str) -> Dict[str, Any]:
        """
        GET `url`, retrying transport-level failures.

        Returns:
            Dict[str, Any]: JSON body of a 200 response.

        Raises:
            TransportError: After `retry_attempts` failed attempts.
            ProviderRateLimitedError: On HTTP 429 (not retried at this layer).
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_incrementing(start=self.retry_backoff, increment=self.retry_backoff)
            + wait_random(0, self.retry_jitter),
            retry=retry_if_exception_type(TransportError),
            before_sleep=self._log_transport_retry,
            sleep=self._sleep,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                response = await self.http_client.get(url)
                if response.status == 429:
                    raise ProviderRateLimitedError("HTTP 429 Too Many Requests")
                if response.status != 200:
                    raise TransportError(f"HTTP {response.status}", status=response.status)
                if not isinstance(response.body, dict):
                    raise TransportError("Non-object JSON body", status=response.status)
                if response.body.get("status") == "UNKNOWN_ERROR":
                    raise TransportError("Places UNKNOWN_ERROR", status=response.status)
                return response.body

    async def _fetch_respecting_rate_limit(self, url: str) -> Dict[str, Any]:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.rate_limit_attempts),
            wait=wait_fixed(self.rate_limit_backoff) + wait_random(0, self.retry_jitter),
            retry=retry_if_exception_type(ProviderRateLimitedError),
            before_sleep=self._log_rate_limit_pause,
            sleep=self._sleep,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                body = await self._fetch_with_retry(url)
                if body.get("status") == "OVER_QUERY_LIMIT":
                    raise ProviderRateLimitedError(body.get("error_message") or "OVER_QUERY_LIMIT")
                return body

    async def lookup(self, name: str, address: str) -> LookupResult:
        """
        Query Places for one business and pick the most similar result.

        Args:
            name (str): Business name.
            address (str): Street address.

        Returns:
            LookupResult: MATCH with the raw place and its score, NOT_FOUND when the
            service has no candidate (or the best one scores under `min_score`), or
            TRANSIENT_FAILURE once retries are exhausted or the request is rejected.
        """
        url = self.build_url(name, address)
        logger.debug(f"🔎 Places lookup for '{name}' / '{address}'")
        try:
            body = await self._fetch_respecting_rate_limit(url)
        except ProviderRateLimitedError as e:
            logger.error(f"Still rate limited after {self.rate_limit_attempts} attempts for '{name}': {e}")
            return LookupResult.transient_failure("rate_limited")
        except TransportError as e:
            logger.error(f"API request failed {self.retry_attempts} times for '{name}': {e}")
            return LookupResult.transient_failure(str(e))

        status = body.get("status")
        results = body.get("results") or []
        if status == "ZERO_RESULTS" or (status == "OK" and not results):
            return LookupResult.not_found(reason="zero_results")
        if status != "OK":
            # REQUEST_DENIED / INVALID_REQUEST: retrying the same URL cannot help
            detail = body.get("error_message") or "no details"
            logger.error(f"Places rejected the request for '{name}': {status} ({detail})")
            return LookupResult.transient_failure(f"{status}: {detail}")

        best, score = select_best_candidate(name, address, results)
        if score < self.min_score:
            logger.info(f"Best candidate for '{name}' scored {score:.2f} < {self.min_score:.2f}, treating as not found")
            return LookupResult.not_found(reason="below_min_score")

        logger.debug(f"✅ Matched '{name}' -> '{best.get('name')}' ({score:.2f}) among {len(results)} result(s)")
        return LookupResult.match(best, score)
