"""Project-level configuration, path helpers and runtime settings."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "opticom.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"
DEFAULT_MODEL = "claude-3-5-sonnet-20241022"

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _positive_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default

    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be a positive integer, got {raw!r}") from None

    if value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    """Runtime settings sourced from the environment."""

    response_interval_ms: int = 1000
    goal_check_interval: int = 50
    max_consecutive_errors: int = 10
    anthropic_api_key: str | None = None
    llm_model: str = DEFAULT_MODEL
    database_url: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Read and validate settings from environment variables.

        Raises:
            ValueError: If a numeric setting is not a positive integer.
        """
        return cls(
            response_interval_ms=_positive_int("AGENT_RESPONSE_INTERVAL", 1000),
            goal_check_interval=_positive_int("GOAL_CHECK_INTERVAL", 50),
            max_consecutive_errors=_positive_int("MAX_CONSECUTIVE_ERRORS", 10),
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY") or None,
            llm_model=os.getenv("LLM_MODEL") or DEFAULT_MODEL,
            database_url=os.getenv("DATABASE_URL") or None,
        )
