"""
LaunchBox XML game catalog.

Games are stored per platform in ``Data/Platforms/<Platform>.xml`` as
``<Game>`` and ``<AdditionalApplication>`` elements under a ``<LaunchBox>``
root.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Tuple

from lxml import etree

from curimport.curation.launchbox_game import LaunchBoxGame, generate_image_filename
from curimport.curation.models import GameMeta

logger = logging.getLogger(__name__)

# Game fields stored by the catalog that LaunchBox itself does not define
EXTENSION_TAGS: Dict[str, str] = {
    'AlternateTitles': 'alternateTitles',
    'Extreme': 'extreme',
    'Language': 'language',
    'Library': 'library',
    'OriginalDescription': 'originalDescription',
    'ReleaseDate': 'releaseDate',
    'Tags': 'tags',
}

# <AdditionalApplication> tag -> field name
ADD_APP_TAGS: Dict[str, str] = {
    'Id': 'id',
    'GameID': 'gameId',
    'Name': 'name',
    'ApplicationPath': 'applicationPath',
    'CommandLine': 'commandLine',
    'AutoRunBefore': 'autoRunBefore',
    'WaitForExit': 'waitForExit',
}


class CatalogError(Exception):
    """Game catalog errors."""
    pass


class GameCatalog(Protocol):
    """What the import pipeline needs from a game catalog."""

    def list_games(self) -> List[GameMeta]:
        ...

    def add_game(self, game: GameMeta, add_apps: List[GameMeta]) -> bool:
        ...


class LaunchBoxCatalog:
    """
    Game catalog backed by LaunchBox platform XML files.

    Example:
        catalog = LaunchBoxCatalog(Path('~/Flashpoint/Arcade').expanduser())
        games = catalog.list_games()
        catalog.add_game({'id': key, 'title': 'Alien Hominid', 'platform': 'Flash'}, [])
    """

    def __init__(self, root: Path, host_platform: Optional[str] = None):
        """
        Initialize catalog.

        Args:
            root: Library root (contains Data/Platforms)
            host_platform: sys.platform value used when reading ApplicationPath
        """
        self.root = Path(root)
        self.platforms_dir = self.root / 'Data' / 'Platforms'
        self.host_platform = host_platform

    def platform_file(self, platform: str) -> Path:
        """Path of the XML file holding a platform's games."""
        return self.platforms_dir / f"{generate_image_filename(platform or 'Unknown')}.xml"

    def list_games(self) -> List[GameMeta]:
        """
        Read every game of every platform file.

        Unreadable platform files are logged and skipped.

        Returns:
            List of game records
        """
        games = []
        for xml_path in self._platform_files():
            root = self._load_root(xml_path)
            if root is None:
                continue
            for elem in root.iterfind('Game'):
                games.append(self._read_game(elem))
        logger.debug(f"Catalog contains {len(games)} games")
        return games

    def list_add_apps(self) -> List[GameMeta]:
        """Read every additional application of every platform file."""
        add_apps = []
        for xml_path in self._platform_files():
            root = self._load_root(xml_path)
            if root is None:
                continue
            for elem in root.iterfind('AdditionalApplication'):
                add_apps.append({
                    field_name: elem.findtext(tag)
                    for tag, field_name in ADD_APP_TAGS.items()
                    if elem.findtext(tag) is not None
                })
        return add_apps

    def has_game(self, game_id: str) -> bool:
        """Check whether any platform file holds a game with this ID."""
        return any(g.get('id') == game_id for g in self.list_games())

    def add_game(self, game: GameMeta, add_apps: List[GameMeta]) -> bool:
        """
        Append a game and its additional applications to its platform file.

        The platform file is rewritten through a temporary file, so a failed
        write leaves the previous file untouched.

        Args:
            game: Game record (needs 'id'; 'platform' selects the file)
            add_apps: Additional application records

        Returns:
            True if the game was written, False otherwise
        """
        game_id = game.get('id')
        if not game_id:
            logger.error("Cannot add game without an ID")
            return False

        xml_path = self.platform_file(game.get('platform', ''))

        try:
            root, existing_ids = self._load_for_write(xml_path)
        except CatalogError as e:
            logger.error(str(e))
            return False

        if game_id in existing_ids:
            logger.error(f"Game {game_id} already exists in {xml_path.name}")
            return False

        try:
            root.append(self._create_game_element(game))
            for add_app in add_apps:
                root.append(self._create_add_app_element(add_app))
        except ValueError as e:
            # lxml refuses control characters and NUL bytes in text
            logger.error(f"Game {game_id} has a value that cannot be stored as XML: {e}")
            return False

        try:
            self._write_atomic(root, xml_path)
        except OSError as e:
            logger.error(f"Failed to write platform file {xml_path}: {e}")
            return False

        logger.info(f"Added game '{game.get('title', game_id)}' to {xml_path.name}")
        return True

    def _platform_files(self) -> List[Path]:
        if not self.platforms_dir.is_dir():
            return []
        return sorted(self.platforms_dir.glob('*.xml'))

    def _load_root(self, xml_path: Path) -> Optional[etree._Element]:
        try:
            return etree.parse(str(xml_path)).getroot()
        except (OSError, etree.XMLSyntaxError) as e:
            logger.warning(f"Skipping unreadable platform file {xml_path}: {e}")
            return None

    def _load_for_write(self, xml_path: Path) -> Tuple[etree._Element, set]:
        """Load a platform file for appending (or start a new one)."""
        if not xml_path.exists():
            return etree.Element('LaunchBox'), set()

        try:
            parser = etree.XMLParser(remove_blank_text=True)
            root = etree.parse(str(xml_path), parser).getroot()
        except (OSError, etree.XMLSyntaxError) as e:
            # Never overwrite a file we could not read
            raise CatalogError(f"Cannot update platform file {xml_path}: {e}")

        existing_ids = {elem.findtext('ID') for elem in root.iterfind('Game')}
        return root, existing_ids

    def _read_game(self, elem: etree._Element) -> GameMeta:
        game = LaunchBoxGame.parse(elem, self.host_platform)
        for tag, field_name in EXTENSION_TAGS.items():
            value = elem.findtext(tag)
            if value is not None:
                game[field_name] = value
        return game

    def _create_game_element(self, game: GameMeta) -> etree._Element:
        elem = etree.Element('Game')
        for field_name, value in game.items():
            if value is None:
                continue
            tag = LaunchBoxGame.field_to_tag_name(field_name)
            if LaunchBoxGame.tag_name_to_field(tag) is None and tag not in EXTENSION_TAGS:
                logger.debug(f"Not storing unknown game field: {field_name}")
                continue
            self._add_element(elem, tag, value)
        return elem

    def _create_add_app_element(self, add_app: GameMeta) -> etree._Element:
        elem = etree.Element('AdditionalApplication')
        for tag, field_name in ADD_APP_TAGS.items():
            value = add_app.get(field_name)
            if value is not None:
                self._add_element(elem, tag, value)
        return elem

    def _add_element(self, parent: etree._Element, tag: str, text: str) -> None:
        """Add a child element with text content (escaped by lxml)."""
        child = etree.SubElement(parent, tag)
        child.text = str(text)

    def _write_atomic(self, root: etree._Element, xml_path: Path) -> None:
        xml_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = xml_path.with_suffix(xml_path.suffix + '.tmp')
        try:
            etree.ElementTree(root).write(
                str(temp_path),
                encoding='utf-8',
                xml_declaration=True,
                pretty_print=True,
                standalone=True
            )
            os.replace(temp_path, xml_path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise
