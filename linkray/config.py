"""Centralised settings for the LinkRay backend.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

_DEFAULT_MODEL_FALLBACKS = ",".join(
    [
        # Gemma models share one large daily quota bucket.
        "gemma-3-27b-it",
        "gemma-3-12b-it",
        "gemma-3-4b-it",
        "gemini-2.0-flash-lite-001",
        "gemini-3-flash-preview",
        "gemini-exp-1206",
        "gemini-2.5-flash",
        "gemini-flash-latest",
    ]
)

_DEFAULT_SCREENSHOT_TEMPLATE = (
    "https://api.microlink.io?url={url}&screenshot=true&meta=false&embed=screenshot.url"
)


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("LINKRAY_WORKSPACE", Path.home() / ".linkray")
        )
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite database file."""
        return self.workspace_dir / "linkray.db"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    cli_config_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("LINKRAY_CLI_DIR", Path.home() / ".linkray_cli")
        )
    )

    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )

    # ------------------------------------------------------------------
    # Fetcher
    # ------------------------------------------------------------------
    fetch_timeout: float = field(
        default_factory=lambda: float(os.environ.get("FETCH_TIMEOUT", "5.0"))
    )
    fetch_max_bytes: int = field(
        default_factory=lambda: int(os.environ.get("FETCH_MAX_BYTES", str(2 * 1024 * 1024)))
    )

    # ------------------------------------------------------------------
    # Crawler / extractor
    # ------------------------------------------------------------------
    quick_page_chars: int = field(
        default_factory=lambda: int(os.environ.get("QUICK_PAGE_CHARS", "10000"))
    )
    deep_page_chars: int = field(
        default_factory=lambda: int(os.environ.get("DEEP_PAGE_CHARS", "12000"))
    )
    deep_max_pages: int = field(
        default_factory=lambda: int(os.environ.get("DEEP_MAX_PAGES", "100"))
    )
    min_page_chars: int = field(
        default_factory=lambda: int(os.environ.get("MIN_PAGE_CHARS", "50"))
    )
    crawl_concurrency: int = field(
        default_factory=lambda: int(os.environ.get("CRAWL_CONCURRENCY", "4"))
    )

    # ------------------------------------------------------------------
    # AI analysis
    # ------------------------------------------------------------------
    llm_provider: str = field(
        default_factory=lambda: os.environ.get("LLM_PROVIDER", "gemini")
    )
    ai_model_fallbacks: list[str] = field(
        default_factory=lambda: [
            m.strip()
            for m in os.environ.get("AI_MODEL_FALLBACKS", _DEFAULT_MODEL_FALLBACKS).split(",")
            if m.strip()
        ]
    )
    ai_failure_policy: str = field(
        default_factory=lambda: os.environ.get("AI_FAILURE_POLICY", "raise")
    )
    ollama_base_url: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")
    )

    # ------------------------------------------------------------------
    # Cache / persistence
    # ------------------------------------------------------------------
    cache_max_age: int = field(
        default_factory=lambda: int(os.environ.get("CACHE_MAX_AGE", str(24 * 60 * 60)))
    )
    share_cache_with_anonymous: bool = field(
        default_factory=lambda: _env_bool("SHARE_CACHE_WITH_ANONYMOUS", "true")
    )
    allow_anonymous_recent: bool = field(
        default_factory=lambda: _env_bool("ALLOW_ANONYMOUS_RECENT", "false")
    )

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------
    auth_provider: str = field(
        default_factory=lambda: os.environ.get("AUTH_PROVIDER", "local")
    )
    supabase_url: str = field(
        default_factory=lambda: os.environ.get("SUPABASE_URL", "")
    )
    supabase_anon_key: str = field(
        default_factory=lambda: os.environ.get("SUPABASE_ANON_KEY", "")
    )

    # ------------------------------------------------------------------
    # Presentation helpers
    # ------------------------------------------------------------------
    screenshot_url_template: str = field(
        default_factory=lambda: os.environ.get(
            "SCREENSHOT_URL_TEMPLATE", _DEFAULT_SCREENSHOT_TEMPLATE
        )
    )
    cors_origins: list[str] = field(
        default_factory=lambda: [
            o.strip()
            for o in os.environ.get("LINKRAY_CORS_ORIGINS", "http://localhost:3000").split(",")
            if o.strip()
        ]
    )


# Module-level singleton; import this everywhere:
#   from linkray.config import settings
settings = Settings()
