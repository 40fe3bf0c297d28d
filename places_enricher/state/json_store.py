"""
Whole-document JSON persistence for the pipeline's state files.

Every update rewrites the full document through a temporary file and
os.replace, so readers never observe a half-written file.
"""
import json
import os
import tempfile
from typing import Any
from loguru import logger

from places_enricher.exceptions import PersistenceError


def read_json(path: str, default: Any = None) -> Any:
    """
    Load a JSON document.

    Args:
        path (str): File to read.
        default (Any): Returned when the file does not exist.

    Returns:
        Any: Parsed document, or `default` if the file is absent.

    Raises:
        PersistenceError: If the file exists but cannot be read or parsed.
    """
    if not os.path.exists(path):
        return default
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise PersistenceError(path, f"cannot read state: {e}") from e


def write_json(path: str, data: Any) -> None:
    """
    Atomically replace `path` with `data` serialized as indented JSON.

    Raises:
        PersistenceError: If the directory or file cannot be written.
    """
    directory = os.path.dirname(os.path.abspath(path))
    tmp_path = None
    try:
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=".json")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)
    except (OSError, TypeError, ValueError) as e:
        if tmp_path and os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise PersistenceError(path, f"cannot write state: {e}") from e
    logger.debug(f"💾 Wrote {path}")


def append_json(path: str, item: Any) -> int:
    """
    Append one element to the JSON list stored at `path` (created if absent).

    Returns:
        int: Length of the list after the append.
    """
    items = read_json(path, default=[])
    if not isinstance(items, list):
        raise PersistenceError(path, "expected a JSON list")
    items.append(item)
    write_json(path, items)
    return len(items)
