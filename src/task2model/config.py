"""Environment-driven configuration, read once at startup."""

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_MS = 10 * 60 * 1000
DEFAULT_EMBEDDINGS_TTL_MS = 24 * 60 * 60 * 1000
DEFAULT_CACHE_DIR = Path.home() / ".cache" / "openrouter-task2model"
DEFAULT_TIMEOUT = 30.0

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def load_env_file() -> Optional[str]:
    """Load the first .env file found near the entry point or working directory.

    Returns:
        Path of the loaded file, or None if nothing was found.
    """
    main_dir = os.path.dirname(os.path.abspath(sys.argv[0]))
    candidates = [
        os.path.join(main_dir, ".env"),
        os.path.join(os.path.dirname(main_dir), ".env"),
        os.path.join(os.getcwd(), ".env"),
        os.path.join(os.path.dirname(os.path.abspath(__file__)), ".env"),
    ]

    for env_path in candidates:
        if os.path.exists(env_path):
            logger.info(f"Loading .env from {env_path}")
            load_dotenv(env_path)
            return env_path

    logger.debug("No .env file found in expected locations")
    return None


def _positive_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}, using default {default}")
        return default
    return value if value > 0 else default


def _positive_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}, using default {default}")
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class Settings:
    """Process-wide settings for the task2model server."""

    api_key: Optional[str] = None
    cache_ttl_ms: int = DEFAULT_CACHE_TTL_MS
    embeddings_ttl_ms: int = DEFAULT_EMBEDDINGS_TTL_MS
    cache_dir: Path = DEFAULT_CACHE_DIR
    log_level: int = logging.INFO
    log_file: Optional[Path] = None
    timeout: float = DEFAULT_TIMEOUT

    @property
    def log_path(self) -> Path:
        """Rotating log file location."""
        return self.log_file or self.cache_dir / "logs" / "task2model.log"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        cache_dir = os.getenv("CACHE_DIR")
        log_file = os.getenv("TASK2MODEL_LOG_FILE")
        level_name = (os.getenv("LOG_LEVEL") or "info").strip().lower()

        return cls(
            api_key=os.getenv("OPENROUTER_API_KEY"),
            cache_ttl_ms=_positive_int("CACHE_TTL_MS", DEFAULT_CACHE_TTL_MS),
            embeddings_ttl_ms=_positive_int("EMBEDDINGS_TTL_MS", DEFAULT_EMBEDDINGS_TTL_MS),
            cache_dir=Path(cache_dir).expanduser() if cache_dir else DEFAULT_CACHE_DIR,
            log_level=LOG_LEVELS.get(level_name, logging.INFO),
            log_file=Path(log_file).expanduser() if log_file else None,
            timeout=_positive_float("OPENROUTER_TIMEOUT", DEFAULT_TIMEOUT),
        )
