"""Configuration loading and parsing."""

import copy

import yaml
from pathlib import Path
from typing import Dict, Any, Optional


class ConfigError(Exception):
    """Configuration-related errors."""
    pass


# Values used when a section or key is absent from config.yaml
DEFAULT_CONFIG: Dict[str, Any] = {
    'paths': {
        'library': None,
        'staging': None,
    },
    'indexing': {
        'max_workers': 4,
        'content_folder': 'content',
        'thumbnail_names': ['logo'],
        'screenshot_names': ['ss'],
    },
    'import': {
        'remove_staged': True,
        'validate_images': True,
    },
    'logging': {
        'level': 'INFO',
        'console': True,
        'file': None,
    },
    'runtime': {
        'dry_run': False,
    },
}


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load and parse configuration file.

    Args:
        config_path: Path to config.yaml file. If None, searches current directory.

    Returns:
        Parsed configuration dictionary with defaults filled in

    Raises:
        ConfigError: If config file cannot be loaded or parsed
    """
    # Determine config file path
    if config_path is None:
        config_path = Path.cwd() / "config.yaml"
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(
            f"Configuration file not found: {config_path}\n"
            f"Copy config.yaml.example to config.yaml and configure it."
        )

    # Load YAML
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}")
    except Exception as e:
        raise ConfigError(f"Failed to read config file: {e}")

    if not isinstance(config, dict):
        raise ConfigError("Configuration file must contain a YAML dictionary")

    return apply_defaults(config)


def apply_defaults(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fill in missing sections and keys from DEFAULT_CONFIG.

    Sections present in the file keep their values; only absent keys are
    added. Sections that are not mappings are left for the validator to
    report.

    Args:
        config: Configuration dictionary as read from YAML

    Returns:
        The same dictionary, updated in place
    """
    for section, defaults in DEFAULT_CONFIG.items():
        current = config.get(section)
        if current is None:
            config[section] = copy.deepcopy(defaults)
            continue
        if not isinstance(current, dict):
            continue
        for key, value in defaults.items():
            current.setdefault(key, copy.deepcopy(value))

    return config


def get_config_value(config: Dict[str, Any], path: str, default: Any = None) -> Any:
    """
    Get a nested configuration value using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., 'indexing.max_workers')
        default: Default value if path not found

    Returns:
        Configuration value or default

    Example:
        >>> get_config_value(config, 'indexing.thumbnail_names')
        ['logo']
    """
    keys = path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value
