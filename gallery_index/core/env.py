from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Libraries that log every parsed tag or statement at DEBUG.
NOISY_LOGGERS = ("PIL", "sqlalchemy.engine")


def load_dotenv_if_present(path: Optional[str | Path] = None) -> Optional[Path]:
    """Load gallery settings from GALLERY_ENV_FILE (default ./.env) if it exists.

    Variables already set in the environment win over the file. Returns the
    file that was loaded, if any.
    """
    dotenv_path = Path(path or os.getenv("GALLERY_ENV_FILE", ".env"))
    if not dotenv_path.is_file():
        return None
    load_dotenv(dotenv_path=dotenv_path, override=False)
    return dotenv_path


def configure_logging(default_level: str = "INFO") -> int:
    """Set the root level from LOG_LEVEL and keep library chatter at INFO."""
    level_name = os.getenv("LOG_LEVEL", default_level).strip().upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))
    return level
