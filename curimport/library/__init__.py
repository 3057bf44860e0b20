"""
Game library package for curimport.

File based implementations of the game catalog and image collection that
curations are imported into.
"""

from .catalog import CatalogError, GameCatalog, LaunchBoxCatalog
from .images import GameImageCollection, ImageRole, ImageValidationError

__all__ = [
    'CatalogError',
    'GameCatalog',
    'LaunchBoxCatalog',
    'GameImageCollection',
    'ImageRole',
    'ImageValidationError',
]
