"""Trickle configuration.

Settings come from `TRICKLE_*` environment variables and are validated by a
Pydantic model. Nothing here touches the app data itself.
"""

import os
from pathlib import Path

from pydantic import BaseModel, Field

from trickle.core.models import DEFAULT_MONTHLY_RATE

DEFAULT_DATA_FILE = Path("~/.trickle/appdata.json")


class TrickleConfig(BaseModel):
    """Runtime configuration.

    Attributes:
        data_file: Where the app data envelope is stored.
        default_monthly_rate: Monthly rate used when no data can be loaded.
        currency: ISO code used when formatting amounts.
        log_level: Minimum level for log output.
        log_json: Emit JSON log lines instead of console output.
    """

    data_file: Path = DEFAULT_DATA_FILE
    default_monthly_rate: float = Field(default=DEFAULT_MONTHLY_RATE, ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3, pattern=r"^[A-Z]{3}$")
    log_level: str = "WARNING"
    log_json: bool = False

    @property
    def data_path(self) -> Path:
        return self.data_file.expanduser()


def load_config(environ: dict[str, str] | None = None) -> TrickleConfig:
    """Build the configuration from environment variables.

    Args:
        environ: Mapping to read from (defaults to `os.environ`).

    Returns:
        Validated TrickleConfig. Unset variables keep their defaults.
    """
    env = os.environ if environ is None else environ
    values: dict[str, object] = {}
    if "TRICKLE_DATA_FILE" in env:
        values["data_file"] = env["TRICKLE_DATA_FILE"]
    if "TRICKLE_DEFAULT_MONTHLY_RATE" in env:
        values["default_monthly_rate"] = env["TRICKLE_DEFAULT_MONTHLY_RATE"]
    if "TRICKLE_CURRENCY" in env:
        values["currency"] = env["TRICKLE_CURRENCY"].upper()
    if "TRICKLE_LOG_LEVEL" in env:
        values["log_level"] = env["TRICKLE_LOG_LEVEL"].upper()
    if "TRICKLE_LOG_JSON" in env:
        values["log_json"] = env["TRICKLE_LOG_JSON"] == "1"
    return TrickleConfig(**values)
