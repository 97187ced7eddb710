"""Runtime settings loaded from environment variables and an optional .env file."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import dotenv_values


class ConfigurationError(Exception):
    """Raised when required settings are missing or malformed."""
    pass


DEFAULT_GITHUB_USERNAME = "jvegar"
DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_BACKEND_API_URL = "http://localhost:3000"
DEFAULT_SYNC_INTERVAL_SECONDS = 5 * 60
DEFAULT_CACHE_TTL_SECONDS = 4 * 60
DEFAULT_BATCH_SIZE = 5
DEFAULT_LOG_LEVEL = "INFO"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
    if value < 1:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    """Settings for the repository sync job."""

    github_token: str
    github_username: str = DEFAULT_GITHUB_USERNAME
    github_api_url: str = DEFAULT_GITHUB_API_URL
    backend_api_url: str = DEFAULT_BACKEND_API_URL
    sync_interval_seconds: int = DEFAULT_SYNC_INTERVAL_SECONDS
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS
    batch_size: int = DEFAULT_BATCH_SIZE
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, env_file: Optional[str] = ".env") -> "Settings":
        """
        Build settings from the environment.

        Values from env_file fill in variables the process environment does
        not set; a missing file is ignored.

        Args:
            env_file: Path of a dotenv file, or None to skip it

        Raises:
            ConfigurationError: If GITHUB_TOKEN is unset or a numeric value is invalid
        """
        env = {}
        if env_file:
            env.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
        env.update(os.environ)

        github_token = (env.get("GITHUB_TOKEN") or "").strip()
        if not github_token:
            raise ConfigurationError(
                "GITHUB_TOKEN environment variable is not set. "
                "Please set it in your environment or application settings."
            )

        log_level = env.get("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
        if log_level not in LOG_LEVELS:
            raise ConfigurationError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")

        return cls(
            github_token=github_token,
            github_username=env.get("GITHUB_USERNAME", DEFAULT_GITHUB_USERNAME),
            github_api_url=env.get("GITHUB_API_URL", DEFAULT_GITHUB_API_URL),
            backend_api_url=env.get("BACKEND_API_URL", DEFAULT_BACKEND_API_URL),
            sync_interval_seconds=_int_env(env, "SYNC_INTERVAL_SECONDS", DEFAULT_SYNC_INTERVAL_SECONDS),
            cache_ttl_seconds=_int_env(env, "CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS),
            batch_size=_int_env(env, "BATCH_SIZE", DEFAULT_BATCH_SIZE),
            log_level=log_level,
        )
