"""API key lookup for a resolved client."""

import os
from typing import Mapping, Optional

from tenant_extract.errors import MissingApiKeyError
from tenant_extract.schemas.effective import EffectiveConfig
from tenant_extract.settings import get_settings


def resolve_api_key(
    config: EffectiveConfig,
    environ: Optional[Mapping[str, str]] = None,
    default_env_var: Optional[str] = None,
) -> str:
    """Get the API key for a client.

    The client's own ``apiKeyEnvVar`` is tried first, then the default
    environment variable from settings.

    Raises:
        MissingApiKeyError: If neither variable is set.
    """
    environ = os.environ if environ is None else environ
    default_env_var = default_env_var or get_settings().default_api_key_env

    if config.api_key_env_var and environ.get(config.api_key_env_var):
        return environ[config.api_key_env_var]
    if environ.get(default_env_var):
        return environ[default_env_var]

    env_var = config.api_key_env_var or default_env_var
    raise MissingApiKeyError(
        f'No API key found for client "{config.name}". Set {env_var} environment variable.'
    )
