"""TOML configuration loader for the feedback client.

Loads connection defaults from defaults.toml and applies environment
overrides on top. Precedence, highest first:
  1. PICTOSPEAK_BASE_URL / PICTOSPEAK_TIMEOUT environment variables
  2. The TOML file passed in (or the packaged defaults.toml)
  3. ClientConfig field defaults
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import ValidationError

from pictospeak.errors import ConfigError
from pictospeak.schemas.config import ClientConfig

logger = logging.getLogger(__name__)

# Default config directory inside the pictospeak package
_CONFIG_DIR = Path(__file__).parent / "config"

ENV_BASE_URL = "PICTOSPEAK_BASE_URL"
ENV_TIMEOUT = "PICTOSPEAK_TIMEOUT"


def load_client_config(config_path: Path | None = None) -> ClientConfig:
    """Load client settings from a TOML file plus environment overrides.

    Args:
        config_path: Path to a TOML file with a [client] table. Defaults to
            pictospeak/config/defaults.toml.

    Returns:
        A validated ClientConfig.

    Raises:
        ConfigError: If the file is missing, is not valid TOML, or holds
            values ClientConfig rejects.
    """
    path = config_path or _CONFIG_DIR / "defaults.toml"
    if not path.exists():
        raise ConfigError(f"Client config not found: {path}")

    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    section = raw.get("client", {})
    if not isinstance(section, dict):
        raise ConfigError(f"[client] in {path} must be a table")

    values = dict(section)
    base_url = os.environ.get(ENV_BASE_URL)
    if base_url:
        values["base_url"] = base_url
        logger.debug("base_url overridden from %s", ENV_BASE_URL)
    timeout = os.environ.get(ENV_TIMEOUT)
    if timeout:
        values["timeout"] = timeout
        logger.debug("timeout overridden from %s", ENV_TIMEOUT)

    try:
        config = ClientConfig(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid client config in {path}: {e}") from e

    config.base_url = config.base_url.rstrip("/")
    return config
