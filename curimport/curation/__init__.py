"""
Curation package for curimport.

Handles reading curation sources, parsing their meta files and preparing
metadata for import.
"""

from .models import (
    AddApp,
    ContentFile,
    Curation,
    CurationIndex,
    CurationMeta,
    MediaAsset,
    SourceType,
)
from .result import Parsed
from .keys import generate_key, validate_semi_uuid
from .meta_parser import parse_curation_meta, parse_curation_meta_yaml
from .launchbox_game import LaunchBoxGame, generate_image_filename
from .indexer import IndexOptions, index_curation_archive, index_curation_folder, load_meta_file
from .defaults import GameMetaDefaults, apply_meta_defaults, get_default_meta_values

__all__ = [
    'AddApp',
    'ContentFile',
    'Curation',
    'CurationIndex',
    'CurationMeta',
    'MediaAsset',
    'SourceType',
    'Parsed',
    'generate_key',
    'validate_semi_uuid',
    'parse_curation_meta',
    'parse_curation_meta_yaml',
    'LaunchBoxGame',
    'generate_image_filename',
    'IndexOptions',
    'index_curation_archive',
    'index_curation_folder',
    'load_meta_file',
    'GameMetaDefaults',
    'apply_meta_defaults',
    'get_default_meta_values',
]
