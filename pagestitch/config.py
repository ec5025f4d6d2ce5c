"""Centralised settings for pagestitch.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from pagestitch import __version__

# Load .env from the project root (one level up from the package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # HTTP client
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "20.0"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get("USER_AGENT", f"pagestitch/{__version__}")
    )
    parallel_requests: int = field(
        default_factory=lambda: int(os.environ.get("PARALLEL_REQUESTS", "10"))
    )

    # ------------------------------------------------------------------
    # Link discovery
    # ------------------------------------------------------------------
    prefix_ratio: float = field(
        default_factory=lambda: float(os.environ.get("PREFIX_RATIO", "0.7"))
    )
    prefix_min_count: int = field(
        default_factory=lambda: int(os.environ.get("PREFIX_MIN_COUNT", "2"))
    )

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    render_workers: int = field(
        default_factory=lambda: int(os.environ.get("RENDER_WORKERS", str(os.cpu_count() or 1)))
    )
    readability_min_chars: int = field(
        default_factory=lambda: int(os.environ.get("READABILITY_MIN_CHARS", "250"))
    )
    default_mode: str = field(
        default_factory=lambda: os.environ.get("RENDER_MODE", "body")
    )


# Module-level singleton; import this everywhere:
#   from pagestitch.config import settings
settings = Settings()
