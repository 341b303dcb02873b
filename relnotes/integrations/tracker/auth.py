"""
Tracker token lookup.

The bearer token comes from an environment variable when set, otherwise from
the YAML file written by the company's OAuth helper (key `access_token`).
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)


class TrackerAuthError(Exception):
    """Raised when no tracker token can be found."""

    pass


class TokenProvider:
    """Resolves the tracker bearer token."""

    def __init__(self, env_var: str = "TRACKER_AUTH_TOKEN", token_file: Optional[str] = None):
        self.env_var = env_var
        self.token_file = Path(token_file or "~/.local/state/artools_oauth2").expanduser()

    def get_token(self) -> str:
        """
        Returns:
            The bearer token

        Raises:
            TrackerAuthError: If neither the env var nor the token file yields a token
        """
        token = os.getenv(self.env_var, "").strip()
        if token:
            return token

        try:
            with open(self.token_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError as e:
            raise TrackerAuthError(
                f"{self.env_var} not set and token file {self.token_file} not found"
            ) from e
        except (OSError, yaml.YAMLError) as e:
            raise TrackerAuthError(f"Failed to read token file {self.token_file}: {e}") from e

        token = str(data.get("access_token") or "").strip() if isinstance(data, dict) else ""
        if not token:
            raise TrackerAuthError(f"No access_token in {self.token_file}")

        logger.debug(f"Loaded tracker token from {self.token_file}")
        return token
