from loguru import logger

from places_enricher.exceptions import PersistenceError
from places_enricher.state.json_store import read_json, write_json


class ProgressTracker:
    """Index of the next unprocessed row of one sheet, persisted as {"last_row": n}."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> int:
        data = read_json(self.path)
        if data is None:
            return 0
        if not isinstance(data, dict):
            raise PersistenceError(self.path, "malformed progress file: expected a JSON object")
        # Older progress files store the same index under "lastRow"
        raw = data.get("last_row", data.get("lastRow"))
        if raw is None:
            raise PersistenceError(self.path, "malformed progress file: no last_row entry")
        try:
            index = int(raw)
        except (TypeError, ValueError) as e:
            raise PersistenceError(self.path, f"malformed progress file: {e}") from e
        if index < 0:
            raise PersistenceError(self.path, f"malformed progress file: negative row {index}")
        return index

    def commit(self, index: int) -> None:
        # Callers only move forward; a backwards commit means a bug upstream
        previous = self.load()
        if index < previous:
            logger.warning(f"Progress moving backwards in {self.path}: {previous} -> {index}")
        write_json(self.path, {"last_row": index})
