from typing import Any, Dict, List
from loguru import logger

from places_enricher.models import NotFoundRecord
from places_enricher.state.json_store import append_json, read_json


class ResultStore:
    """
    Append-only JSON logs for matched Places results and for records with no match.

    The match log is per sheet, the not-found log is shared by all sheets.
    Assumes a single writer.
    """

    def __init__(self, output_path: str, not_found_path: str):
        self.output_path = output_path
        self.not_found_path = not_found_path

    def record_match(self, candidate: Dict[str, Any]) -> None:
        size = append_json(self.output_path, candidate)
        logger.debug(f"Stored match '{candidate.get('name')}' ({size} in {self.output_path})")

    def record_not_found(self, record: NotFoundRecord) -> None:
        size = append_json(self.not_found_path, record.to_dict())
        logger.debug(f"Stored not-found '{record.business_name}' ({size} in {self.not_found_path})")

    def matches(self) -> List[Dict[str, Any]]:
        return read_json(self.output_path, default=[])

    def not_found(self) -> List[Dict[str, Any]]:
        return read_json(self.not_found_path, default=[])
