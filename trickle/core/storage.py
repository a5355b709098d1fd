"""App data persistence.

Reads and writes the versioned envelope `{"version": "v1", "payload": ...}`
as JSON. Loading never fails: a missing or unreadable file yields a fresh
default `AppData` so the user always has something to work with.
"""

import os
import tempfile
from datetime import datetime
from pathlib import Path

import structlog
from pydantic import ValidationError

from trickle.core.exceptions import StorageError
from trickle.core.models import DEFAULT_MONTHLY_RATE, AppData, AppDataEnvelope

logger = structlog.get_logger(__name__)


def default_app_data(monthly_rate: float = DEFAULT_MONTHLY_RATE) -> AppData:
    """Fresh data: the given rate, starting now, no events."""
    return AppData(monthly_rate=monthly_rate, start_date=datetime.now(), events=())


def parse_app_data(raw: str) -> AppData:
    """Parse stored JSON into AppData.

    Accepts the versioned envelope and, for files written before the
    envelope existed, a bare AppData object.

    Raises:
        ValidationError: If the text is neither.
    """
    try:
        return AppDataEnvelope.model_validate_json(raw).payload
    except ValidationError:
        return AppData.model_validate_json(raw)


def load_app_data(path: Path, default_monthly_rate: float = DEFAULT_MONTHLY_RATE) -> AppData:
    """Load app data from `path`, falling back to defaults.

    Args:
        path: JSON file holding the envelope.
        default_monthly_rate: Monthly rate for the fallback data.

    Returns:
        Stored AppData, or default data if the file is absent or corrupt.
    """
    if not path.exists():
        logger.info("app_data_missing", path=str(path))
        return default_app_data(default_monthly_rate)

    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("app_data_unreadable", path=str(path), error=str(e))
        return default_app_data(default_monthly_rate)

    try:
        data = parse_app_data(raw)
    except ValidationError as e:
        logger.warning("app_data_corrupt", path=str(path), errors=e.error_count())
        return default_app_data(default_monthly_rate)

    logger.debug("app_data_loaded", path=str(path), events=len(data.events))
    return data


def dump_app_data(data: AppData) -> str:
    return AppDataEnvelope(payload=data).model_dump_json(indent=2)


def save_app_data(data: AppData, path: Path) -> None:
    """Write app data to `path` atomically.

    Raises:
        StorageError: If the file cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    except OSError as e:
        raise StorageError(f"Cannot save app data to {path}: {e}") from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(dump_app_data(data))
        os.replace(tmp_name, path)
    except OSError as e:
        Path(tmp_name).unlink(missing_ok=True)
        raise StorageError(f"Cannot save app data to {path}: {e}") from e

    logger.debug("app_data_saved", path=str(path), events=len(data.events))
