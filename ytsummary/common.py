"""
Common utilities for the ytsummary generation client.

Provides:
- Environment loading (.env via python-dotenv)
- Logging setup (tqdm-safe console + rotating file)
- Small env parsing helpers used for module-level settings
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv
from tqdm import tqdm

load_dotenv()

# Package version for tracking which client produced a summary
CLIENT_VERSION = "0.2.0"

# Log directory configuration
LOG_DIR = Path(os.getenv("PIPELINE_LOG_DIR", "logs"))
LOG_FILE = LOG_DIR / os.getenv("PIPELINE_LOG_FILE", "ytsummary.log")


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that routes messages through tqdm.write()
    to avoid breaking progress bars.
    """
    def __init__(self, level=logging.NOTSET):
        super().__init__(level)

    def emit(self, record):
        try:
            msg = self.format(record)
            tqdm.write(msg)
            self.flush()
        except Exception:
            self.handleError(record)


def setup_logging(name: str, level: int = logging.INFO) -> logging.Logger:
    """Set up logging with console (tqdm-safe) and file handlers."""
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Check if handler already exists to avoid duplicates
    if not logger.handlers:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - [%(threadName)s] - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

        console_handler = TqdmLoggingHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(LOG_FILE, maxBytes=5 * 1024 * 1024, backupCount=5)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        # Prevent propagation to root logger which might have default handlers
        logger.propagate = False

    return logger


def env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    """Read a comma-separated env var into a de-duplicated tuple, falling back to default."""
    raw = os.getenv(name)
    if not raw:
        return default
    items = tuple(dict.fromkeys(item.strip() for item in raw.split(",") if item.strip()))
    return items or default


def env_float(name: str, default: float) -> float:
    """Read a float env var; malformed values fall back to default."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logging.warning(f"Ignoring non-numeric {name}={raw!r}, using {default}")
        return default


def get_api_key(name: str = "GEMINI_API_KEY") -> Optional[str]:
    """Read an API key from the environment at call time (empty means unset)."""
    value = os.getenv(name)
    return value or None
