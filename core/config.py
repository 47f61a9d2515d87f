"""Environment configuration and logging setup for the HTTP service."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

DEFAULT_API_TITLE = "Loss Mitigation Calculator API"
DEFAULT_CORS_ORIGINS = "http://localhost:3000"

_logging_configured = False


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    api_title: str = DEFAULT_API_TITLE
    cors_origins: List[str] = field(default_factory=lambda: [DEFAULT_CORS_ORIGINS])


def load_settings(env_file: str | None = None) -> Settings:
    """Read settings from the environment after loading ``.env`` if present.

    Variables already set in the process environment win over the file.
    """

    load_dotenv(env_file)
    origins = os.getenv("LOSSMIT_CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
    return Settings(
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        api_title=os.getenv("LOSSMIT_API_TITLE", DEFAULT_API_TITLE),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
    )


def configure_logging(level: str = "INFO") -> None:
    """Apply ``logging.basicConfig`` once per process."""

    global _logging_configured
    if _logging_configured:
        return
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _logging_configured = True
