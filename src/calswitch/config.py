"""Configuration management for calswitch."""

import logging
import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path

logger = logging.getLogger(__name__)

CALSWITCH_HOME = Path(os.environ.get("CALSWITCH_HOME", Path.home() / "calswitch"))
CONFIG_FILE = CALSWITCH_HOME / "config" / "calswitch.conf"


@dataclass
class Config:
    """calswitch configuration."""

    feeds: list[str] = field(default_factory=list)
    timezone: str = "UTC"
    lookahead_days: int = 7
    poll_interval_minutes: int = 15
    request_timeout: int = 30
    on_command: str = ""
    off_command: str = ""
    log_level: str = "INFO"

    @property
    def lookahead(self) -> timedelta:
        return timedelta(days=self.lookahead_days)


def _parse_int(key: str, value: str, default: int) -> int:
    try:
        parsed = int(value)
    except ValueError:
        logger.warning(f"Invalid {key.upper()} value {value!r}, using {default}")
        return default
    if parsed <= 0:
        logger.warning(f"{key.upper()} must be positive, using {default}")
        return default
    return parsed


def _strip_value(value: str) -> str:
    """Unquote a value and drop inline comments."""
    # Handle quoted values with inline comments: "value" # comment
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        if end_quote != -1:
            return value[1:end_quote]
        return value[1:]
    # Unquoted: strip inline comments
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def load_config(path: Path | None = None) -> Config:
    """Load configuration from calswitch.conf file."""
    config = Config()
    config_file = path or CONFIG_FILE

    if not config_file.exists():
        return config

    for line in config_file.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _strip_value(value.strip())

        match key:
            case "feeds":
                config.feeds = [f.strip() for f in value.split(",") if f.strip()]
            case "timezone":
                config.timezone = value
            case "lookahead_days":
                config.lookahead_days = _parse_int(key, value, config.lookahead_days)
            case "poll_interval_minutes":
                config.poll_interval_minutes = _parse_int(key, value, config.poll_interval_minutes)
            case "request_timeout":
                config.request_timeout = _parse_int(key, value, config.request_timeout)
            case "on_command":
                config.on_command = value
            case "off_command":
                config.off_command = value
            case "log_level":
                config.log_level = value.upper()

    return config
