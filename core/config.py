"""Engine configuration.

Settings come from environment variables, optionally seeded from a ``.env``
file at the repository root. Business tables (noise markers, ignore ids,
renames) are not configuration; they live in ``extraction.rules`` and
``reconciliation.rules``.
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


REPO_ROOT = Path(__file__).resolve().parents[1]

DEFAULT_LINE_Y_TOLERANCE = 8.0
DEFAULT_DB_PATH = REPO_ROOT / "linen_audit.db"
DEFAULT_REPORTS_DIR = REPO_ROOT / "artifacts" / "reports"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_level(name: str, default: int = logging.INFO) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else default


@dataclass(frozen=True)
class EngineSettings:
    """Runtime settings for the audit engine.

    Attributes:
        line_y_tolerance: Max vertical distance for two tokens to share a line
        db_path: SQLite file backing the snapshot store
        reports_dir: Directory for exported report artifacts
        log_level: Logging level for engine loggers
        log_json: Emit JSON log lines instead of human-readable ones
    """
    line_y_tolerance: float = DEFAULT_LINE_Y_TOLERANCE
    db_path: Path = DEFAULT_DB_PATH
    reports_dir: Path = DEFAULT_REPORTS_DIR
    log_level: int = logging.INFO
    log_json: bool = False


def load_settings(env_file: Optional[Path] = None) -> EngineSettings:
    """Build settings from the environment.

    Args:
        env_file: Optional .env file; defaults to REPO_ROOT/.env when present.
            Values already set in the environment win over the file.
    """
    env_path = env_file or REPO_ROOT / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=False)

    db_path = os.getenv("AUDIT_DB_PATH")
    reports_dir = os.getenv("AUDIT_REPORTS_DIR")

    return EngineSettings(
        line_y_tolerance=_env_float("AUDIT_LINE_Y_TOLERANCE", DEFAULT_LINE_Y_TOLERANCE),
        db_path=Path(db_path) if db_path else DEFAULT_DB_PATH,
        reports_dir=Path(reports_dir) if reports_dir else DEFAULT_REPORTS_DIR,
        log_level=_env_level("AUDIT_LOG_LEVEL"),
        log_json=_env_bool("AUDIT_LOG_JSON"),
    )


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    """Process-wide settings, loaded once."""
    return load_settings()
