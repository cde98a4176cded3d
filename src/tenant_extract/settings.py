"""Environment-driven settings for all tenant_extract entry points.

Settings are resolved once per process:
- ``.env`` in the working directory is loaded (python-dotenv)
- the config home (global config + clients directory) is taken from
  ``TENANT_EXTRACT_HOME``, falling back to the working directory

Entry points (CLI, services embedding the resolver) call ``get_settings()``.
Tests call ``reset_settings_cache()`` after changing the environment.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from tenant_extract.constants import DEFAULT_PROCESSED_ORIGINAL_SUBFOLDER

logger = logging.getLogger(__name__)

HOME_ENV_VAR = "TENANT_EXTRACT_HOME"
DEFAULT_API_KEY_ENV_VAR = "GEMINI_API_KEY"


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    config_home: Path = field(
        default_factory=lambda: Path(os.environ.get(HOME_ENV_VAR) or Path.cwd())
    )

    # Env var holding the API key used when a client declares none
    default_api_key_env: str = field(
        default_factory=lambda: os.environ.get(
            "TENANT_EXTRACT_DEFAULT_API_KEY_ENV", DEFAULT_API_KEY_ENV_VAR
        )
    )

    # Subfolder counted as "processed" by the folder status probe
    processed_subfolder: str = field(
        default_factory=lambda: os.environ.get(
            "TENANT_EXTRACT_PROCESSED_SUBFOLDER", DEFAULT_PROCESSED_ORIGINAL_SUBFOLDER
        )
    )

    @classmethod
    def from_env(cls) -> "Settings":
        """Create Settings from the environment, loading .env first."""
        env_path = Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            logger.debug(f"Loaded .env from {env_path}")
        return cls()


# Cached settings (loaded once per session)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings_cache() -> None:
    """Reset the settings cache so the next call re-reads the environment."""
    global _settings
    _settings = None
