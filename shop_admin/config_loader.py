"""
Configuration loading utilities for the shop admin console.

This module loads config.yaml, merges it over built-in defaults and exposes
single-value lookups for the schema source, API endpoints and dev mode.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging
from copy import deepcopy

logger = logging.getLogger(__name__)

CONFIG_FILE = Path("config.yaml")

SUPPORTED_API_MODES = {"relay", "direct"}

# Global configuration cache
_config_cache: Optional[Dict[str, Any]] = None


def deep_merge(base_dict: Dict[str, Any], update_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two dictionaries, with update_dict taking precedence.

    Args:
        base_dict: Base dictionary (defaults)
        update_dict: Dictionary to merge in (user config)

    Returns:
        Merged dictionary
    """
    result = deepcopy(base_dict)

    for key, value in update_dict.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = deepcopy(value)

    return result


def get_default_config() -> Dict[str, Any]:
    """
    Get default configuration.

    Returns:
        Dictionary with default configuration
    """
    return {
        'app': {
            'name': 'Shop Admin Console',
            'version': '1.0.0'
        },
        'ui': {
            'page_title': '叫叫我顧客管理系統',
            'default_shop_id': 'tawe_zz001'
        },
        'schema': {
            'source': 'schemas',
            'edit_schema': 'ui-schema.csv',
            'create_schema': 'ui-schema-create.csv'
        },
        'api': {
            'mode': 'relay',
            'relay_url': 'http://localhost:8000/shop-api',
            'backend_url': 'https://line-bot-306511771181.asia-east1.run.app',
            'timeout': 20
        },
        'dev_mode': {
            'enabled': True,
            'mock_data_file': 'mock/example_crm_json_list.json'
        },
        'logging': {
            'level': 'INFO'
        }
    }


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load application configuration merged over the defaults.

    Args:
        config_path: Optional path to config file (defaults to config.yaml)

    Returns:
        Complete configuration dictionary
    """
    global _config_cache

    if config_path is None:
        if _config_cache is not None:
            return _config_cache
        config_path = CONFIG_FILE

    default_config = get_default_config()

    if not config_path.exists():
        logger.warning(f"Configuration file not found: {config_path}")
        logger.info("Using default configuration")
        config = default_config
    else:
        config = _read_config_file(config_path, default_config)

    if config_path == CONFIG_FILE:
        _config_cache = config
    return config


def _read_config_file(config_path: Path, default_config: Dict[str, Any]) -> Dict[str, Any]:
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            user_config = yaml.safe_load(f)

        if user_config is None:
            logger.warning(f"Configuration file is empty: {config_path}")
            return default_config

        if not isinstance(user_config, dict):
            logger.error(f"Configuration file is not a valid dictionary: {config_path}")
            logger.info("Using default configuration")
            return default_config

        config = deep_merge(default_config, user_config)
        logger.info(f"Successfully loaded configuration from {config_path}")
        return config

    except yaml.YAMLError as e:
        logger.error(f"YAML parsing error in {config_path}: {e}")
        logger.info("Using default configuration")
        return default_config

    except (IOError, OSError) as e:
        logger.error(f"Failed to read configuration file {config_path}: {e}")
        logger.info("Using default configuration")
        return default_config


def get_config_value(section: str, key: str, default: Any = None) -> Any:
    """
    Get a specific configuration value.

    Args:
        section: Configuration section (e.g., 'api', 'schema')
        key: Configuration key within section
        default: Default value if not found

    Returns:
        Configuration value or default
    """
    config = load_config()
    section_values = config.get(section) or {}
    if not isinstance(section_values, dict):
        return default
    return section_values.get(key, default)


def validate_config(config: Dict[str, Any]) -> bool:
    """
    Validate configuration structure and required fields.

    Args:
        config: Configuration dictionary to validate

    Returns:
        True if configuration is valid, False otherwise
    """
    required_sections = ['app', 'ui', 'schema', 'api', 'dev_mode']

    for section in required_sections:
        if not isinstance(config.get(section), dict):
            logger.warning(f"Missing required configuration section: {section}")
            return False

    api = config['api']
    if api.get('mode') not in SUPPORTED_API_MODES:
        logger.warning(f"Unsupported api mode: {api.get('mode')}")
        return False

    url_key = 'relay_url' if api['mode'] == 'relay' else 'backend_url'
    if not isinstance(api.get(url_key), str) or not api.get(url_key):
        logger.warning(f"api.{url_key} must be a non-empty string")
        return False

    try:
        timeout = float(api.get('timeout', 20))
        if timeout <= 0:
            logger.warning("api.timeout must be positive")
            return False
    except (ValueError, TypeError):
        logger.warning("api.timeout must be a valid number")
        return False

    schema = config['schema']
    for key in ('edit_schema', 'create_schema'):
        if not schema.get(key):
            logger.warning(f"Missing schema configuration: {key}")
            return False

    return True


def get_config_summary(config: Dict[str, Any]) -> Dict[str, Any]:
    """Get a summary of the current configuration."""
    api = config.get('api', {})
    return {
        'app_name': config.get('app', {}).get('name', 'Unknown'),
        'app_version': config.get('app', {}).get('version', 'Unknown'),
        'api_mode': api.get('mode', 'Unknown'),
        'api_url': api.get('relay_url') if api.get('mode') == 'relay' else api.get('backend_url'),
        'schema_source': config.get('schema', {}).get('source', 'Unknown'),
        'dev_mode': config.get('dev_mode', {}).get('enabled', False)
    }
