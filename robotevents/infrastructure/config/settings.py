"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
YAML configuration file (~/.robotevents/config.yaml).
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv

from robotevents.domain.exceptions import ConfigurationError
from robotevents.domain.models.common import ApiToken, DEFAULT_MAX_ATTEMPTS, DEFAULT_MISSING_HINT_BACKOFF_S
from robotevents.infrastructure.http.transport import (
    DEFAULT_TIMEOUT_SECONDS, DEFAULT_USER_AGENT, V1_API_BASE, V2_API_BASE,
)

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".robotevents"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "ROBOTEVENTS_"
DEFAULT_PER_PAGE = 250

# --- Global Configuration Store (Simple Approach) ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


def _flatten(data: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Turns nested YAML mappings into dotted keys ({'api': {'token': x}} -> {'api.token': x})."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, Mapping):
            flat.update(_flatten(value, prefix=f"{dotted}."))
        else:
            flat[dotted] = value
    return flat


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values supplied by the caller

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
    """
    global _config, _loaded
    if _loaded:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. YAML file (lowest priority)
    if config_file.exists():
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(_flatten(yaml_config))
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. .env file; override=False keeps real environment variables on top
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("No .env file found at or above the current directory.")

    _loaded = True
    logger.info("Configuration loading process completed.")


def reset_configuration() -> None:
    """Forgets loaded configuration so the next load re-reads every source."""
    global _config, _loaded
    _config = {}
    _loaded = False


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


def _coerce(value: str) -> Any:
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    try:
        return float(value) if "." in value else int(value)
    except ValueError:
        return value


def env_key(key: str) -> str:
    """Environment variable name for a dotted key ('api.timeout' -> 'ROBOTEVENTS_API_TIMEOUT')."""
    return ENV_PREFIX + key.upper().replace(".", "_")


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by key.

    Priority:
    1. Test configuration (if in testing mode)
    2. Environment variable (ROBOTEVENTS_<KEY> with dots as underscores)
    3. YAML config
    4. Default value

    Args:
        key: The configuration key, e.g. 'api.timeout_seconds'
        default: Default value if the key is not found

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]

    name = env_key(key)
    if name in os.environ:
        return _coerce(os.environ[name])

    if key in _config:
        return _config[key]

    logger.debug(f"Config key '{key}' not found in environment or loaded config. Returning default: {default}")
    return default


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """Set configuration values that override every other source."""
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")

# --- Convenience Functions ---

def get_api_token() -> Optional[ApiToken]:
    """Bearer token for the v2 API: ROBOTEVENTS_TOKEN first, then api.token."""
    token = get_config("token") or get_config("api.token")
    return ApiToken(str(token)) if token else None


def _optional_int(key: str) -> Optional[int]:
    value = get_config(key)
    if value in (None, "", 0):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Config key '{key}' must be an integer, got {value!r}") from None


@dataclass(frozen=True)
class ClientSettings:
    """Everything needed to build a RobotEventsClient."""
    api_token: Optional[ApiToken]
    base_url: str = V2_API_BASE
    legacy_base_url: str = V1_API_BASE
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    per_page: int = DEFAULT_PER_PAGE
    max_concurrency: Optional[int] = None
    missing_hint_backoff_seconds: float = DEFAULT_MISSING_HINT_BACKOFF_S
    retry_decode_failures: bool = True
    user_agent: str = DEFAULT_USER_AGENT


def get_client_settings() -> ClientSettings:
    """Builds ClientSettings from the loaded configuration.

    Raises:
        ConfigurationError: If a numeric setting cannot be parsed or is out of range.
    """
    try:
        settings = ClientSettings(
            api_token=get_api_token(),
            base_url=str(get_config("api.base_url", V2_API_BASE)),
            legacy_base_url=str(get_config("api.legacy_base_url", V1_API_BASE)),
            timeout_seconds=float(get_config("api.timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
            max_attempts=int(get_config("retry.max_attempts", DEFAULT_MAX_ATTEMPTS)),
            per_page=int(get_config("pagination.per_page", DEFAULT_PER_PAGE)),
            max_concurrency=_optional_int("pagination.max_concurrency"),
            missing_hint_backoff_seconds=float(
                get_config("retry.missing_hint_backoff_seconds", DEFAULT_MISSING_HINT_BACKOFF_S)
            ),
            retry_decode_failures=bool(get_config("retry.decode_failures", True)),
            user_agent=str(get_config("api.user_agent", DEFAULT_USER_AGENT)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid client configuration: {e}") from e
    _validate(settings)
    return settings


def _validate(settings: ClientSettings) -> None:
    problems = []
    if settings.timeout_seconds <= 0:
        problems.append(f"api.timeout_seconds must be positive, got {settings.timeout_seconds}")
    if settings.max_attempts < 1:
        problems.append(f"retry.max_attempts must be at least 1, got {settings.max_attempts}")
    if settings.per_page < 1:
        problems.append(f"pagination.per_page must be at least 1, got {settings.per_page}")
    if settings.max_concurrency is not None and settings.max_concurrency < 1:
        problems.append(f"pagination.max_concurrency must be at least 1, got {settings.max_concurrency}")
    if settings.missing_hint_backoff_seconds < 0:
        problems.append(
            f"retry.missing_hint_backoff_seconds must not be negative, got {settings.missing_hint_backoff_seconds}"
        )
    if problems:
        raise ConfigurationError("Invalid client configuration: " + "; ".join(problems))
