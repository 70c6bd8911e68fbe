"""
Deployment environment and the logging behaviour that goes with it.

ENVIRONMENT picks dev / staging / prod; LEXINDEX_DEBUG turns debug output
on or off regardless of the environment (on by default in dev only).
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Environment(Enum):
    """Deployment environments."""

    DEV = "dev"
    STAGING = "staging"
    PROD = "prod"


_LOG_LEVELS = {
    Environment.DEV: "DEBUG",
    Environment.STAGING: "INFO",
    Environment.PROD: "WARNING",
}

# Client libraries that log every HTTP round trip.
CLIENT_LOGGERS = ("httpx", "httpcore", "openai", "urllib3", "pinecone")


def _get_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class EnvironmentConfig:
    """Logging profile for the current deployment."""

    name: Environment
    debug: bool
    log_level: str

    @property
    def client_log_level(self) -> str:
        """Level for the HTTP client loggers; they stay quiet unless debugging."""
        return "DEBUG" if self.debug else "WARNING"

    @classmethod
    def from_env(cls, env_name: Optional[str] = None) -> "EnvironmentConfig":
        """Create config from environment name; unknown names mean dev."""
        raw = (env_name or os.getenv("ENVIRONMENT", "dev")).strip().lower()
        try:
            env = Environment(raw)
        except ValueError:
            env = Environment.DEV

        debug = _get_flag("LEXINDEX_DEBUG", env is Environment.DEV)
        return cls(
            name=env,
            debug=debug,
            log_level="DEBUG" if debug else _LOG_LEVELS[env],
        )
