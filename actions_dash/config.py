"""Configuration loading and constants for the dashboard."""

import logging
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Defaults (overridable in config.yaml)
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_PER_PAGE = 100

# Jobs preview cache
JOBS_CACHE_TTL_SECONDS = 10 * 60
JOBS_DEBOUNCE_MS = 400
CACHE_SWEEP_INTERVAL_SECONDS = 5 * 60

# HTTP
REQUEST_TIMEOUT_SECONDS = 30
MAX_RETRIES = 3

CONFIG_ENV_VAR = "GH_ACTIONS_DASH_CONFIG"
TOKEN_ENV_VARS = ("GH_TOKEN", "GITHUB_TOKEN")


def get_config_path() -> Path:
    """Get the path to config.yaml.

    Can be overridden via the GH_ACTIONS_DASH_CONFIG environment variable.
    """
    env_override = os.environ.get(CONFIG_ENV_VAR)
    if env_override:
        return Path(env_override).expanduser()
    return Path.home() / ".config" / "gh-actions-dash" / "config.yaml"


def get_default_log_path() -> Path:
    return Path.home() / ".cache" / "gh-actions-dash" / "dashboard.log"


@dataclass
class DashConfig:
    """Merged dashboard settings."""

    api_url: str = DEFAULT_API_URL
    token: str | None = None
    per_page: int = DEFAULT_PER_PAGE
    jobs_cache_ttl: float = JOBS_CACHE_TTL_SECONDS
    debounce_ms: int = JOBS_DEBOUNCE_MS
    sweep_interval: float = CACHE_SWEEP_INTERVAL_SECONDS
    request_timeout: int = REQUEST_TIMEOUT_SECONDS
    max_retries: int = MAX_RETRIES
    log_file: Path = field(default_factory=get_default_log_path)

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000


def load_config_file(path: Path | None = None) -> dict[str, Any]:
    """Load config.yaml, returning an empty dict when it does not exist."""
    config_path = path or get_config_path()
    if not config_path.exists():
        return {}

    with open(config_path) as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"{config_path} must contain a YAML mapping")
    return config


def load_config(path: Path | None = None) -> DashConfig:
    """Build a DashConfig from defaults, config.yaml and the environment."""
    raw = load_config_file(path)
    config = DashConfig(
        api_url=raw.get("api_url", DEFAULT_API_URL),
        token=raw.get("token"),
        per_page=int(raw.get("per_page", DEFAULT_PER_PAGE)),
        jobs_cache_ttl=float(raw.get("jobs_cache_ttl", JOBS_CACHE_TTL_SECONDS)),
        debounce_ms=int(raw.get("debounce_ms", JOBS_DEBOUNCE_MS)),
        sweep_interval=float(raw.get("sweep_interval", CACHE_SWEEP_INTERVAL_SECONDS)),
        request_timeout=int(raw.get("request_timeout", REQUEST_TIMEOUT_SECONDS)),
        max_retries=int(raw.get("max_retries", MAX_RETRIES)),
    )
    if raw.get("log_file"):
        config.log_file = Path(raw["log_file"]).expanduser()
    config.token = resolve_token(config.token)
    return config


def resolve_token(configured: str | None = None) -> str | None:
    """Find a GitHub token.

    Order: GH_TOKEN, GITHUB_TOKEN, the config file value, then the GitHub
    CLI's stored credentials (``gh auth token``).
    """
    for var in TOKEN_ENV_VARS:
        value = os.environ.get(var)
        if value:
            return value
    if configured:
        return configured
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        logger.debug("gh auth token unavailable: %s", exc)
        return None
    token = result.stdout.strip()
    return token if result.returncode == 0 and token else None
