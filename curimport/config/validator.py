"""Configuration validation."""

import logging
from pathlib import Path
from typing import Dict, Any, List

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Configuration validation errors."""
    pass


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate configuration structure and values.

    Args:
        config: Configuration dictionary from loader

    Raises:
        ValidationError: If configuration is invalid
    """
    errors = []

    for section in ('paths', 'indexing', 'import', 'logging', 'runtime'):
        value = config.get(section, {})
        if value is not None and not isinstance(value, dict):
            errors.append(f"{section} must be a mapping")

    if errors:
        raise ValidationError(
            "Configuration validation failed:\n  - " + "\n  - ".join(errors)
        )

    # Validate paths section
    errors.extend(_validate_paths(config.get('paths') or {}))

    # Validate indexing section
    errors.extend(_validate_indexing(config.get('indexing') or {}))

    # Validate import section
    errors.extend(_validate_import(config.get('import') or {}))

    # Validate logging section
    errors.extend(_validate_logging(config.get('logging') or {}))

    # Validate runtime section
    errors.extend(_validate_runtime(config.get('runtime') or {}))

    if errors:
        raise ValidationError(
            "Configuration validation failed:\n  - " + "\n  - ".join(errors)
        )


def _validate_paths(section: Dict[str, Any]) -> List[str]:
    """Validate paths section."""
    errors = []

    library = section.get('library')
    if not library:
        errors.append("paths.library is required")
    elif not isinstance(library, str):
        errors.append("paths.library must be a string path")
    else:
        path = Path(library).expanduser()
        if path.exists() and not path.is_dir():
            errors.append(f"paths.library must be a directory: {path}")

    staging = section.get('staging')
    if staging is not None and not isinstance(staging, str):
        errors.append("paths.staging must be a string path or null")

    return errors


def _validate_indexing(section: Dict[str, Any]) -> List[str]:
    """Validate indexing options section."""
    errors = []

    max_workers = section.get('max_workers', 4)
    if not isinstance(max_workers, int) or isinstance(max_workers, bool):
        errors.append("indexing.max_workers must be an integer")
    elif not (1 <= max_workers <= 32):
        errors.append("indexing.max_workers must be between 1 and 32")

    content_folder = section.get('content_folder', 'content')
    if not isinstance(content_folder, str) or not content_folder.strip():
        errors.append("indexing.content_folder must be a non-empty string")
    elif '/' in content_folder or '\\' in content_folder:
        errors.append("indexing.content_folder must be a single folder name")

    for key in ('thumbnail_names', 'screenshot_names'):
        names = section.get(key, [])
        if not isinstance(names, list):
            errors.append(f"indexing.{key} must be a list")
        elif not names:
            errors.append(f"indexing.{key} must not be empty")
        elif any(not isinstance(n, str) or not n for n in names):
            errors.append(f"indexing.{key} entries must be non-empty strings")

    return errors


def _validate_import(section: Dict[str, Any]) -> List[str]:
    """Validate import options section."""
    errors = []

    for key in ('remove_staged', 'validate_images'):
        if key in section and not isinstance(section[key], bool):
            errors.append(f"import.{key} must be a boolean")

    return errors


def _validate_logging(section: Dict[str, Any]) -> List[str]:
    """Validate logging options section."""
    errors = []

    # Validate level
    level = section.get('level', 'INFO')
    valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR']
    if level not in valid_levels:
        errors.append(f"logging.level must be one of: {', '.join(valid_levels)}")

    # Validate console flag
    console = section.get('console', True)
    if not isinstance(console, bool):
        errors.append("logging.console must be a boolean")

    # Validate optional log file
    if 'file' in section and section['file'] is not None:
        if not isinstance(section['file'], str):
            errors.append("logging.file must be a string path or null")

    return errors


def _validate_runtime(section: Dict[str, Any]) -> List[str]:
    """Validate runtime options section."""
    errors = []

    # Validate dry_run flag
    dry_run = section.get('dry_run', False)
    if not isinstance(dry_run, bool):
        errors.append("runtime.dry_run must be a boolean")

    return errors
