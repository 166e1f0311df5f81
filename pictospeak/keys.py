"""Auth token lookup for the Pictospeak client.

The bearer token is read from an environment variable. Before looking,
tokens saved in ~/.pictospeak/token.env and .env in the current
directory are loaded into os.environ, with this priority:
  1. Variables already set in the shell (highest)
  2. ~/.pictospeak/token.env
  3. .env in current directory (project-level)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

# Directory for user-level Pictospeak configuration
PICTOSPEAK_HOME = Path.home() / ".pictospeak"
TOKEN_FILE = PICTOSPEAK_HOME / "token.env"


def load_token_env() -> int:
    """Load saved tokens into os.environ; returns how many vars were set."""
    loaded = 0
    for env_file in (TOKEN_FILE, Path.cwd() / ".env"):
        if env_file.is_file():
            loaded += _load_env_file(env_file)
    return loaded


def _load_env_file(path: Path) -> int:
    """Set unset vars from a KEY=VALUE file. ``export KEY=VALUE`` is accepted."""
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError:
        logger.debug("Could not read %s", path)
        return 0

    loaded = 0
    for raw in lines:
        line = raw.strip()
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        name, _, value = line.partition("=")
        name = name.strip()
        if not name or os.environ.get(name):
            continue
        os.environ[name] = value.strip().strip("'\"")
        loaded += 1
        logger.debug("Loaded %s from %s", name, path)
    return loaded


def get_auth_token(env_var: str) -> str:
    """Return the bearer token from ``env_var``, or "" if none is set."""
    load_token_env()
    return os.environ.get(env_var, "")
