"""Configuration loader for secrets-browser."""
import os
import logging
from pathlib import Path
from typing import Dict, Any
import yaml

from .models import MASK
from .preferences import get_preference
from .store_client import AwsCliSecretClient, GCPSecretClient, SecretStoreClient

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("aws", "gcp")


class ConfigError(Exception):
    """Configuration error exception."""
    pass


def default_config_path() -> Path:
    return Path.home() / ".config" / "secrets-browser" / "config.yml"


def _get_config_path() -> str:
    """
    Get config file path.

    Priority order:
    1. User preference (stored in ~/.config/secrets-browser/preferences.json)
    2. Default location: ~/.config/secrets-browser/config.yml

    Raises:
        FileNotFoundError: If config file doesn't exist in any location
    """
    config_path_pref = get_preference("config_path")
    if config_path_pref:
        config_path = Path(config_path_pref)
        if config_path.exists():
            logger.info(f"Using config from preference: {config_path}")
            return str(config_path)
        logger.warning(f"Config path from preference doesn't exist: {config_path}")

    default_config = default_config_path()
    if default_config.exists():
        logger.info(f"Using default config location: {default_config}")
        return str(default_config)

    raise FileNotFoundError(
        "Configuration file not found. Please set up your config file using one of these methods:\n\n"
        "1. Use the default location:\n"
        f"   mkdir -p {default_config.parent}\n"
        f"   cp /path/to/your/config.yml {default_config}\n\n"
        "2. Point to an existing config file:\n"
        "   secrets-browser config set-path /path/to/your/config.yml\n\n"
        "3. Run interactive setup:\n"
        "   secrets-browser config init\n"
    )


def _validate_gcp(config: Dict[str, Any], config_path: str) -> None:
    gcp = config.get('gcp')
    if not isinstance(gcp, dict):
        raise ConfigError(
            f"Missing 'gcp' section in config at {config_path}\n"
            f"Required format:\n"
            f"gcp:\n"
            f"  project_id: your-project-id"
        )

    # GCP_PROJECT overrides the config file
    gcp_project_env = os.getenv("GCP_PROJECT")
    if gcp_project_env:
        logger.debug(f"Using GCP_PROJECT from environment: {gcp_project_env}")
        gcp['project_id'] = gcp_project_env

    if not gcp.get('project_id'):
        raise ConfigError("Missing 'gcp.project_id' in config")

    service_account_path = gcp.get('service_account_path')
    if service_account_path:
        if not os.path.exists(service_account_path):
            raise ConfigError(
                f"Service account file not found at: {service_account_path}\n"
                f"Please ensure the file exists or update the path in {config_path}"
            )
        if not os.path.isfile(service_account_path):
            raise ConfigError(f"Service account path is not a file: {service_account_path}")


def _validate_aws(config: Dict[str, Any], config_path: str) -> None:
    aws = config.get('aws') or {}
    if not isinstance(aws, dict):
        raise ConfigError(f"'aws' section in config at {config_path} must be a mapping")
    aws.setdefault('cli_path', 'aws')
    config['aws'] = aws


def load_config() -> Dict[str, Any]:
    """
    Load and validate configuration from YAML file.

    Returns:
        Dict containing configuration with keys:
        - backend: 'aws' or 'gcp'
        - aws: dict with optional profile, region, cli_path
        - gcp: dict with project_id and optional service_account_path
        - display: dict with mask

    Raises:
        FileNotFoundError: If no config file can be located
        ConfigError: If config file is invalid
    """
    config_path = _get_config_path()

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML config at {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read config file at {config_path}: {e}")

    if not config:
        raise ConfigError(f"Config file at {config_path} is empty")
    if not isinstance(config, dict):
        raise ConfigError(f"Config file at {config_path} must contain a mapping")

    backend_env = os.getenv("SECRETS_BROWSER_BACKEND")
    if backend_env:
        logger.debug(f"Using SECRETS_BROWSER_BACKEND from environment: {backend_env}")
        config['backend'] = backend_env

    backend = config.get('backend', 'aws')
    if backend not in SUPPORTED_BACKENDS:
        raise ConfigError(
            f"Unsupported backend: {backend}\n"
            f"Supported backends: {', '.join(SUPPORTED_BACKENDS)}"
        )
    config['backend'] = backend

    if backend == 'gcp':
        _validate_gcp(config, config_path)
    else:
        _validate_aws(config, config_path)

    display = config.get('display') or {}
    if not isinstance(display, dict):
        raise ConfigError(f"'display' section in config at {config_path} must be a mapping")
    display.setdefault('mask', MASK)
    if not isinstance(display['mask'], str) or not display['mask']:
        raise ConfigError(
            f"'display.mask' in config at {config_path} must be a non-empty string, "
            f"got {display['mask']!r}"
        )
    config['display'] = display

    logger.info(f"Configuration loaded successfully from {config_path}")
    logger.debug(f"Using backend: {backend}")

    return config


def build_client(config: Dict[str, Any]) -> SecretStoreClient:
    """Create the store client selected by a loaded config."""
    if config['backend'] == 'gcp':
        gcp = config['gcp']
        if gcp.get('service_account_path'):
            os.environ['GOOGLE_APPLICATION_CREDENTIALS'] = gcp['service_account_path']
            logger.info(f"Set GOOGLE_APPLICATION_CREDENTIALS from config: {gcp['service_account_path']}")
        return GCPSecretClient(project_id=gcp['project_id'])

    aws = config['aws']
    return AwsCliSecretClient(
        profile=aws.get('profile'),
        region=aws.get('region'),
        cli_path=aws.get('cli_path', 'aws'),
    )
