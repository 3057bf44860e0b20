"""
Shared fixtures for config module tests.
"""
import pytest


@pytest.fixture
def valid_config(tmp_path):
    """Complete valid configuration."""
    library = tmp_path / 'library'
    library.mkdir()
    return {
        'paths': {
            'library': str(library),
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
