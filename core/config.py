# =============================================================================
# core/config.py  —  Runtime Settings
# =============================================================================
#
# All settings come from environment variables.  The entry points (main.py,
# tools/mcp_server.py) call python-dotenv's load_dotenv() first, so a local
# .env file works too.
#
#   TRIP_LEDGER_DATA_DIR   where the JSON store lives          (./data)
#   USE_LIVE_WEATHER       true → Gemini weather advisor       (false → mock)
#   USE_LIVE_CATEGORIZER   true → Gemini expense categorizer   (false → mock)
#   GEMINI_API_KEY         key for the live collaborators (GOOGLE_API_KEY also read)
#   GEMINI_MODEL           model for the live collaborators    (gemini-2.5-flash)
#   AGENT_MODEL            model for the assistant agent       (gemini-2.5-flash)
#   LOG_LEVEL              logging level name                  (INFO)
# =============================================================================

import os
from dataclasses import dataclass, field


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() == "true"


@dataclass
class Settings:
    """Snapshot of the environment at the time it was read."""

    data_dir: str = field(default_factory=lambda: os.environ.get("TRIP_LEDGER_DATA_DIR", "data"))
    use_live_weather: bool = field(default_factory=lambda: _env_flag("USE_LIVE_WEATHER"))
    use_live_categorizer: bool = field(default_factory=lambda: _env_flag("USE_LIVE_CATEGORIZER"))
    gemini_api_key: str | None = field(
        default_factory=lambda: os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY")
    )
    gemini_model: str = field(default_factory=lambda: os.environ.get("GEMINI_MODEL", "gemini-2.5-flash"))
    agent_model: str = field(default_factory=lambda: os.environ.get("AGENT_MODEL", "gemini-2.5-flash"))
    log_level: str = field(default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO").upper())


def get_settings() -> Settings:
    """Read the current environment.  Not cached: tests set env vars freely."""
    return Settings()
