"""
Default metadata values derived from the game library.

The defaults are the most common values found in the library and are
computed once per import session, then passed explicitly to whoever fills
in curation metadata.
"""

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

from .models import GameMeta

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameMetaDefaults:
    """Default values for curation metadata fields."""
    language: str = ''
    play_mode: str = ''
    status: str = ''
    platform: str = ''
    # Platform name -> most common application path on that platform
    add_paths: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))


def _most_common(values: Iterable[str]) -> str:
    """Most frequent non-empty value (first seen wins ties), or ''."""
    counts = Counter(v for v in values if v)
    if not counts:
        return ''
    return counts.most_common(1)[0][0]


def get_default_meta_values(games: Iterable[GameMeta]) -> GameMetaDefaults:
    """
    Compute default metadata values from the games of a library.

    Args:
        games: Game records as returned by the catalog's list_games()

    Returns:
        GameMetaDefaults with the most common language, play mode, status and
        platform, plus the most common application path per platform
    """
    games = list(games)
    paths_by_platform: Dict[str, list] = defaultdict(list)
    for game in games:
        platform = game.get('platform')
        if platform:
            paths_by_platform[platform].append(game.get('applicationPath', ''))

    add_paths = {}
    for platform, paths in paths_by_platform.items():
        path = _most_common(paths)
        if path:
            add_paths[platform] = path

    defaults = GameMetaDefaults(
        language=_most_common(g.get('language', '') for g in games),
        play_mode=_most_common(g.get('playMode', '') for g in games),
        status=_most_common(g.get('status', '') for g in games),
        platform=_most_common(g.get('platform', '') for g in games),
        add_paths=MappingProxyType(add_paths),
    )
    logger.debug(
        f"Default meta values from {len(games)} games: platform='{defaults.platform}', "
        f"{len(add_paths)} application path(s)"
    )
    return defaults


def apply_meta_defaults(meta: GameMeta, defaults: Optional[GameMetaDefaults]) -> None:
    """
    Fill in unset fields of a metadata record from defaults.

    Fields are resolved in a fixed order. The application path is looked up
    by platform, so it has to come after the platform default.

    Args:
        meta: Metadata record, updated in place
        defaults: Defaults table; nothing happens when None
    """
    if defaults is None:
        return

    if not meta.get('language'):
        meta['language'] = defaults.language
    if not meta.get('playMode'):
        meta['playMode'] = defaults.play_mode
    if not meta.get('status'):
        meta['status'] = defaults.status
    if not meta.get('platform'):
        meta['platform'] = defaults.platform

    # Must follow the platform default
    if not meta.get('applicationPath'):
        meta['applicationPath'] = defaults.add_paths.get(meta.get('platform') or '', '')
