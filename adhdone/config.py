"""
Runtime configuration for ADHDone.

Settings are read from the environment. A ``.env`` file found from the
current working directory is loaded first, so local overrides do not need
to be exported in the shell.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv, find_dotenv

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_DATA_DIRECTORY = "~/.cache/adhdone"

STORAGE_VERSION = "v1"
STATE_STORAGE_KEY = f"adhdone-ai-state-{STORAGE_VERSION}"
API_KEY_STORAGE_KEY = "adhdone-openai-api-key"


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Tunable knobs for the tracker, generator and completion client."""
    model: str = DEFAULT_MODEL
    data_directory: str = DEFAULT_DATA_DIRECTORY
    db_path: Optional[str] = None
    api_base: Optional[str] = None
    offline: bool = False
    skip_threshold: int = 3  # consecutive skips before a suggestion is due
    throttle_seconds: int = 60 * 60
    history_limit: int = 50

    @property
    def network_available(self) -> bool:
        return not self.offline

    def resolve_db_path(self) -> Path:
        """Return the SQLite file backing the key-value store, creating its directory."""
        if self.db_path:
            path = Path(self.db_path).expanduser()
        else:
            path = Path(self.data_directory).expanduser() / "adhdone.db"
        path.parent.mkdir(parents=True, exist_ok=True)
        return path


def load_settings(dotenv: bool = True, **overrides) -> Settings:
    """
    Build Settings from ADHDONE_* environment variables.

    Args:
        dotenv: Whether to load a ``.env`` file before reading the environment
        **overrides: Explicit values that win over the environment (None is ignored)

    Returns:
        Settings: The resolved configuration
    """
    if dotenv:
        load_dotenv(find_dotenv(usecwd=True))

    settings = Settings(
        model=os.getenv("ADHDONE_MODEL") or DEFAULT_MODEL,
        data_directory=os.getenv("ADHDONE_DATA_DIR") or DEFAULT_DATA_DIRECTORY,
        db_path=os.getenv("ADHDONE_DB_PATH") or None,
        api_base=os.getenv("ADHDONE_API_BASE") or None,
        offline=_env_flag("ADHDONE_OFFLINE"),
        skip_threshold=int(os.getenv("ADHDONE_SKIP_THRESHOLD", "3")),
        throttle_seconds=int(os.getenv("ADHDONE_THROTTLE_SECONDS", "3600")),
        history_limit=int(os.getenv("ADHDONE_HISTORY_LIMIT", "50")),
    )

    for key, value in overrides.items():
        if value is None:
            continue
        if not hasattr(settings, key):
            raise ValueError(f"Unknown setting: {key}")
        setattr(settings, key, value)

    return settings
