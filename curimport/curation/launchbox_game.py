"""
LaunchBox game record conversion.

Converts ``<Game>`` elements of LaunchBox platform XML files into metadata
records and derives LaunchBox image file names.
"""

import logging
import re
import sys
from pathlib import Path
from typing import Dict, List, Optional

from lxml import etree

from .models import GameMeta
from .result import Parsed

logger = logging.getLogger(__name__)

# Characters that are replaced with '_' in image file names
_INVALID_FILENAME_CHARS = re.compile(r'[/\\?%*:|"<>\']')

# Replacement ApplicationPath per host platform (sys.platform values).
#
# Temporary compatibility shim: the ApplicationPath shipped in Flash.xml is
# only valid on Windows. On Linux the standalone projector is expected at
# Games/flashplayer, extracted by hand with
#   $ cd Arcade/Games
#   $ tar xf flash_player_sa_linux.x86_64.tar.gz flashplayer
# Platforms missing from this table keep the value from the XML.
# TODO: extract the flash_player tarball automatically and drop the linux entry
APPLICATION_PATH_OVERRIDES: Dict[str, str] = {
    'linux': 'Games/flashplayer',
}


class LaunchBoxGame:
    """Reads LaunchBox ``<Game>`` records."""

    # All valid tag names for children of <Game>
    XML_TAGS: List[str] = [
        'ApplicationPath',
        'CommandLine',
        'Completed',
        'ConfigurationCommandLine',
        'ConfigurationPath',
        'DateAdded',
        'DateModified',
        'Developer',
        'DosBoxConfigurationPath',
        'Emulator',
        'Favorite',
        'ID',
        'ManualPath',
        'MusicPath',
        'Notes',
        'Platform',
        'Publisher',
        'Rating',
        'RootFolder',
        'ScummVMAspectCorrection',
        'ScummVMFullscreen',
        'ScummVMGameDataFolderPath',
        'ScummVMGameType',
        'SortTitle',
        'Source',
        'StarRatingFloat',
        'StarRating',
        'CommunityStarRating',
        'CommunityStarRatingTotalVotes',
        'Status',
        'WikipediaURL',
        'Title',
        'UseDosBox',
        'UseScummVM',
        'Version',
        'Series',
        'PlayMode',
        'Region',
        'PlayCount',
        'Portable',
        'VideoPath',
        'Hide',
        'Broken',
        'Genre',
        'MissingVideo',
        'MissingBoxFrontImage',
        'MissingScreenshotImage',
        'MissingClearLogoImage',
        'MissingBackgroundImage',
    ]

    _TAG_SET = frozenset(XML_TAGS)

    @classmethod
    def parse(
        cls,
        game_element: etree._Element,
        host_platform: Optional[str] = None
    ) -> GameMeta:
        """
        Convert a ``<Game>`` element into a metadata record.

        Children with unknown tags are skipped. Empty elements read as ''.

        Args:
            game_element: <Game> XML element
            host_platform: sys.platform value used for ApplicationPath
                overrides (defaults to the running platform)

        Returns:
            Metadata record keyed by field name
        """
        if host_platform is None:
            host_platform = sys.platform

        parsed: GameMeta = {}
        for child in game_element:
            if not isinstance(child.tag, str):
                # Comments and processing instructions
                continue
            prop = cls.tag_name_to_field(child.tag)
            if prop is None:
                continue
            value = ''.join(child.itertext())
            parsed[prop] = cls.parse_value(prop, value, host_platform)

        return parsed

    @classmethod
    def parse_value(cls, prop: str, value: str, host_platform: str) -> str:
        """Apply per-field value conversion."""
        if prop == 'applicationPath':
            return cls.parse_application_path(value, host_platform)
        return value

    @staticmethod
    def parse_application_path(value: str, host_platform: str) -> str:
        """
        Replace the ApplicationPath with the host specific one if required.

        Args:
            value: Value of the ApplicationPath element
            host_platform: sys.platform value of the host

        Returns:
            Override from APPLICATION_PATH_OVERRIDES, or the value unchanged
        """
        return APPLICATION_PATH_OVERRIDES.get(host_platform, value)

    @classmethod
    def tag_name_to_field(cls, tag_name: str) -> Optional[str]:
        """
        Convert a tag name of a <Game> child element to its field name.

        Args:
            tag_name: Tag name (e.g. 'ApplicationPath')

        Returns:
            Field name (e.g. 'applicationPath'), or None for unknown tags
        """
        if tag_name not in cls._TAG_SET:
            return None
        if tag_name == 'ID':
            return 'id'
        return tag_name[0].lower() + tag_name[1:]

    @staticmethod
    def field_to_tag_name(field_name: str) -> str:
        """Convert a field name back to its LaunchBox tag name."""
        if field_name == 'id':
            return 'ID'
        return field_name[0].upper() + field_name[1:]


def generate_image_filename(title: str, index: Optional[int] = None) -> str:
    """
    Generate the file name (without extension) of a LaunchBox game image.

    Examples:
        >>> generate_image_filename("Abobo's Big Adventure", 1)
        'Abobo_s Big Adventure-01'
        >>> generate_image_filename("$wag")
        '$wag'

    Args:
        title: Title of the game
        index: Index of the image, appended zero-padded to two digits

    Returns:
        File name with invalid characters replaced by underscores
    """
    clean_title = _INVALID_FILENAME_CHARS.sub('_', title)
    if index is None:
        return clean_title
    index = max(int(index), 0)
    return f"{clean_title}-{index:02d}"


def parse_platform_file(
    xml_path: Path,
    host_platform: Optional[str] = None
) -> Parsed[List[GameMeta]]:
    """
    Read every <Game> of a LaunchBox platform XML file.

    Args:
        xml_path: Path to a platform file (e.g. Data/Platforms/Flash.xml)
        host_platform: Passed through to LaunchBoxGame.parse

    Returns:
        Parsed list of game records; unreadable or malformed files yield an
        empty list and a diagnostic
    """
    try:
        tree = etree.parse(str(xml_path))
    except (OSError, etree.XMLSyntaxError) as e:
        logger.warning(f"Failed to read platform file {xml_path}: {e}")
        return Parsed([], [f"Failed to read platform file {xml_path.name}: {e}"])

    games = [
        LaunchBoxGame.parse(elem, host_platform)
        for elem in tree.getroot().iterfind('Game')
    ]
    logger.debug(f"Read {len(games)} games from {xml_path.name}")
    return Parsed(games)
