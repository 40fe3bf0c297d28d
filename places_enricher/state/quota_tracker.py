"""
Daily request quota shared by every sheet.

The counter lives in a JSON file so it survives restarts. It is reset when the
calendar day changes and is never allowed to go past the daily limit.
"""
from datetime import date
from typing import Callable
from loguru import logger

from places_enricher.config import DAILY_REQUEST_LIMIT
from places_enricher.exceptions import PersistenceError
from places_enricher.models import QuotaDecision, QuotaState
from places_enricher.state.json_store import read_json, write_json


class QuotaTracker:
    """Persisted counter gating outbound Places requests."""

    def __init__(
        self,
        path: str,
        limit: int = DAILY_REQUEST_LIMIT,
        today: Callable[[], date] = date.today,
    ):
        self.path = path
        self.limit = limit
        self._today = today

    def load(self) -> QuotaState:
        """Current state with the day boundary applied (not persisted)."""
        today = self._today()
        data = read_json(self.path)
        if data is None:
            return QuotaState(count=0, last_reset=today)
        try:
            state = QuotaState.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise PersistenceError(self.path, f"malformed request counter: {e!r}") from e
        if state.last_reset != today:
            logger.info(f"New quota day {today.isoformat()}, resetting request counter (was {state.count})")
            state = QuotaState(count=0, last_reset=today)
        return state

    def try_consume(self) -> QuotaDecision:
        """
        Reserve one request against today's quota.

        Returns:
            QuotaDecision: permitted with the new count, or denied with the
            current count. A denial leaves the stored state untouched.
        """
        state = self.load()
        if state.count >= self.limit:
            logger.warning(f"Daily request limit reached ({state.count}/{self.limit})")
            return QuotaDecision(permitted=False, count=state.count)

        state.count += 1
        write_json(self.path, state.to_dict())
        return QuotaDecision(permitted=True, count=state.count)

    def remaining(self) -> int:
        return max(self.limit - self.load().count, 0)
