"""Configuration loader for manifold-credentials."""
import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml

from .errors import ConfigError, ResourceInvalid
from .models import RequestedResource

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "MANIFOLD_CREDENTIALS_CONFIG"
TEAM_ENV = "MANIFOLD_TEAM"
PROJECT_ENV = "MANIFOLD_PROJECT"

RESOURCES_FORMAT = (
    "Required format:\n"
    "resources:\n"
    "  - label: my-database\n"
    "    credentials:\n"
    "      - key: PASSWORD\n"
    "        name: DB_PASSWORD\n"
    "        default: changeme"
)


@dataclass
class CredentialsConfig:
    """Loaded configuration for a credentials client."""
    team: Optional[str] = None
    project: Optional[str] = None
    resources: List[RequestedResource] = field(default_factory=list)
    source: Optional[str] = None


def _get_config_path(path: Optional[str] = None) -> str:
    """
    Get config file path.

    Priority order:
    1. Explicit path argument
    2. MANIFOLD_CREDENTIALS_CONFIG environment variable
    3. Default location: ~/.config/manifold-credentials/config.yml

    Returns:
        Absolute path to config file

    Raises:
        ConfigError: If config file doesn't exist in any location
    """
    if path:
        return str(Path(path))

    env_path = os.getenv(CONFIG_PATH_ENV)
    if env_path:
        if Path(env_path).exists():
            logger.info(f"Using config from {CONFIG_PATH_ENV}: {env_path}")
            return env_path
        logger.warning(f"Config path from {CONFIG_PATH_ENV} doesn't exist: {env_path}")

    default_config = Path.home() / ".config" / "manifold-credentials" / "config.yml"
    if default_config.exists():
        logger.info(f"Using default config location: {default_config}")
        return str(default_config)

    raise ConfigError(
        "Configuration file not found. Please set up your config file using one of these methods:\n\n"
        "1. Use the default location:\n"
        f"   mkdir -p {default_config.parent}\n"
        f"   cp /path/to/your/config.yml {default_config}\n\n"
        "2. Point to an existing config file:\n"
        f"   export {CONFIG_PATH_ENV}=/path/to/your/config.yml\n"
    )


def _parse_resources(entries: Any, config_path: str) -> List[RequestedResource]:
    if entries is None:
        return []

    if not isinstance(entries, list):
        raise ConfigError(
            f"'resources' must be a list in config at {config_path}\n{RESOURCES_FORMAT}"
        )

    resources = []
    for entry in entries:
        try:
            resource = RequestedResource.from_dict(entry)
        except ResourceInvalid as e:
            raise ConfigError(f"Invalid resource in config at {config_path}: {e}\n{RESOURCES_FORMAT}")

        if not resource.is_valid():
            raise ConfigError(
                f"Resource without 'label' in config at {config_path}\n{RESOURCES_FORMAT}"
            )
        if any(r.label == resource.label for r in resources):
            raise ConfigError(f"Resource '{resource.label}' is listed twice in config at {config_path}")
        resources.append(resource)

    return resources


def _optional_label(config: Dict[str, Any], key: str, env_var: str) -> Optional[str]:
    # Environment variable first (allows override)
    env_value = os.getenv(env_var)
    if env_value:
        logger.debug(f"Using {key} from {env_var}: {env_value}")
        return env_value

    value = config.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a string label, got: {value!r}")
    return value


def load_config(path: Optional[str] = None) -> CredentialsConfig:
    """
    Load and validate configuration from YAML file.

    Args:
        path: Explicit config path (falls back to env var / default location)

    Returns:
        CredentialsConfig with team, project and requested resources

    Raises:
        ConfigError: If config file is missing or invalid
    """
    config_path = _get_config_path(path)

    if not os.path.exists(config_path):
        raise ConfigError(f"Configuration file not found at: {config_path}")

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML config at {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read config file at {config_path}: {e}")

    if config is None:
        config = {}

    if not isinstance(config, dict):
        raise ConfigError(f"Config file at {config_path} must contain a mapping")

    loaded = CredentialsConfig(
        team=_optional_label(config, "team", TEAM_ENV),
        project=_optional_label(config, "project", PROJECT_ENV),
        resources=_parse_resources(config.get("resources"), config_path),
        source=config_path,
    )

    logger.info(f"Configuration loaded successfully from {config_path}")
    logger.debug(f"Requested resources: {[r.label for r in loaded.resources]}")

    return loaded
