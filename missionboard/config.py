"""Settings for missionboard loaded from environment variables.

Variables:
- MISSIONBOARD_DATA_DIR: directory holding the stored keys (legacy
  TASK_DB_PATH is honoured when the new name is unset)
- MISSIONBOARD_LOG_LEVEL: logging level name (default WARNING)
- MISSIONBOARD_LOG_FILE: optional path of a log file
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

ENV_PREFIX = "MISSIONBOARD"

DEFAULT_DATA_DIR = Path.home() / ".missionboard"
DEFAULT_LOG_LEVEL = "WARNING"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _first_env(*names: str) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value is not None and value.strip() != "":
            return value
    return None


def _env_path(*names: str, default: Optional[Path] = None) -> Optional[Path]:
    raw = _first_env(*names)
    if raw is None:
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True)
class Settings:
    """Runtime settings.

    Attributes:
        data_dir: Directory used by FileStorage
        log_level: Logging level name
        log_file: Optional file receiving a copy of the logs
    """

    data_dir: Path
    log_level: str
    log_file: Optional[Path] = None


def get_settings() -> Settings:
    """Build Settings from the current environment.

    Returns:
        Settings instance reflecting os.environ at call time
    """
    level = (_first_env(_k("LOG_LEVEL")) or DEFAULT_LOG_LEVEL).strip().upper()
    return Settings(
        data_dir=_env_path(_k("DATA_DIR"), "TASK_DB_PATH", default=DEFAULT_DATA_DIR),
        log_level=level,
        log_file=_env_path(_k("LOG_FILE")),
    )
