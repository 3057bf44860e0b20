"""
Single curation import.

Copies a curation's content and media into the library and registers the
game in the catalog. Work is staged first; the catalog is written last, so
a failed import never leaves a partially registered game behind.
"""

import logging
import shutil
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Tuple

from curimport.curation.models import Curation, GameMeta, MediaAsset, SourceType
from curimport.curation.sources import SourceError, SourceReader, open_reader
from curimport.library.catalog import GameCatalog
from curimport.library.images import GameImageCollection, ImageRole, ImageValidationError

logger = logging.getLogger(__name__)

# Curation meta field -> game record field
# authorNotes is for curators only and is not stored
GAME_FIELDS: Dict[str, str] = {
    'title': 'title',
    'alternateTitles': 'alternateTitles',
    'series': 'series',
    'developer': 'developer',
    'publisher': 'publisher',
    'platform': 'platform',
    'applicationPath': 'applicationPath',
    'launchCommand': 'commandLine',
    'language': 'language',
    'playMode': 'playMode',
    'status': 'status',
    'extreme': 'extreme',
    'genre': 'genre',
    'tags': 'tags',
    'source': 'source',
    'version': 'version',
    'notes': 'notes',
    'originalDescription': 'originalDescription',
    'releaseDate': 'releaseDate',
    'library': 'library',
}

GAMES_FOLDER = 'Games'
STAGING_FOLDER = '.staging'


class CurationImportError(Exception):
    """A curation could not be imported."""
    pass


def curation_to_game(curation: Curation, now: Optional[datetime] = None) -> GameMeta:
    """
    Build the catalog record of a curation's game.

    The game ID is the curation key.

    Args:
        curation: Curation to convert
        now: Timestamp for DateAdded/DateModified (defaults to current time)

    Returns:
        Game record
    """
    timestamp = (now or datetime.now().astimezone()).isoformat()
    game: GameMeta = {'id': curation.key}
    for meta_field, game_field in GAME_FIELDS.items():
        value = curation.meta.get(meta_field)
        if value:
            game[game_field] = value
    if curation.content:
        game['rootFolder'] = f"{GAMES_FOLDER}/{curation.key}"
    game['dateAdded'] = timestamp
    game['dateModified'] = timestamp
    return game


def curation_to_add_apps(curation: Curation, game_id: str) -> List[GameMeta]:
    """Build the catalog records of a curation's additional applications."""
    return [
        {
            'id': add_app.key,
            'gameId': game_id,
            'name': add_app.meta.get('heading', ''),
            'applicationPath': add_app.meta.get('applicationPath', ''),
            'commandLine': add_app.meta.get('launchCommand', ''),
            'autoRunBefore': 'false',
            'waitForExit': 'false',
        }
        for add_app in curation.add_apps
    ]


def import_curation(
    curation: Curation,
    catalog: GameCatalog,
    images: GameImageCollection,
    *,
    library_root: Path,
    staging_root: Optional[Path] = None,
    remove_staged: bool = True,
    validate_images: bool = True
) -> GameMeta:
    """
    Import one curation into the library.

    Steps:
    1. Stage content and media under ``<staging>/<key>/``
    2. Copy staged content to ``<library>/Games/<key>/``
    3. Store thumbnail and screenshot in the image collection
    4. Register the game and its additional applications in the catalog

    Anything written in steps 2-3 is removed again when a later step fails.

    Args:
        curation: Curation to import
        catalog: Game catalog to register the game in
        images: Image collection for thumbnail and screenshot
        library_root: Library root folder
        staging_root: Staging folder (default: <library>/.staging)
        remove_staged: Delete the staged copy after a successful import
        validate_images: Check media with Pillow before storing it

    Returns:
        The registered game record

    Raises:
        CurationImportError: If the curation has indexing errors or any step fails
    """
    if not curation.can_import():
        raise CurationImportError(
            f"Curation has {len(curation.errors)} unresolved error(s): {curation.errors[0]}"
        )

    library_root = Path(library_root)
    staging_dir = Path(staging_root or library_root / STAGING_FOLDER) / curation.key
    content_dir = library_root / GAMES_FOLDER / curation.key

    game = curation_to_game(curation)
    add_apps = curation_to_add_apps(curation, game['id'])

    if content_dir.exists():
        raise CurationImportError(f"Content folder already exists: {content_dir}")

    promoted_content = False
    stored_images: List[Path] = []
    success = False

    try:
        media = _stage(curation, staging_dir, validate_images)

        staged_content = staging_dir / 'content'
        if staged_content.is_dir():
            content_dir.parent.mkdir(parents=True, exist_ok=True)
            shutil.copytree(staged_content, content_dir)
            promoted_content = True
            logger.debug(f"Copied content to {content_dir}")

        for role, (data, extension) in media.items():
            stored_images.append(images.add_image(game, role, data, extension))

        if not catalog.add_game(game, add_apps):
            raise CurationImportError(f"Catalog rejected game {game['id']}")

        success = True
    except CurationImportError:
        raise
    except (OSError, SourceError, ImageValidationError) as e:
        raise CurationImportError(f"Import of '{curation.title}' failed: {e}") from e
    except Exception as e:
        raise CurationImportError(
            f"Import of '{curation.title}' failed unexpectedly: {type(e).__name__}: {e}"
        ) from e
    finally:
        if not success:
            _rollback(content_dir if promoted_content else None, stored_images, images)
        if not success or remove_staged:
            shutil.rmtree(staging_dir, ignore_errors=True)

    logger.info(f"Imported '{curation.title}' ({curation.key})")
    return game


def _stage(
    curation: Curation,
    staging_dir: Path,
    validate_images: bool
) -> Dict[ImageRole, Tuple[bytes, str]]:
    """
    Copy content and media of a curation into its staging folder.

    Returns:
        Media data by image role
    """
    if staging_dir.exists():
        shutil.rmtree(staging_dir)
    staging_dir.mkdir(parents=True)

    media: Dict[ImageRole, Tuple[bytes, str]] = {}
    if curation.source_type == SourceType.META:
        return media

    with open_reader(curation.source, curation.source_type) as reader:
        content_dir = staging_dir / 'content'
        for content_file in curation.content:
            dest = _safe_join(content_dir, content_file.relative_path)
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(reader.read_bytes(content_file.entry))
        logger.debug(f"Staged {len(curation.content)} content file(s) for {curation.key}")

        for role, asset in ((ImageRole.THUMBNAIL, curation.thumbnail),
                            (ImageRole.SCREENSHOT, curation.screenshot)):
            if asset is None:
                continue
            data = _read_asset(reader, asset, validate_images)
            (staging_dir / f"{role.name.lower()}.{asset.extension}").write_bytes(data)
            media[role] = (data, asset.extension)

    return media


def _read_asset(reader: SourceReader, asset: MediaAsset, validate: bool) -> bytes:
    data = reader.read_bytes(asset.entry)
    if validate:
        GameImageCollection.validate_image(data)
    return data


def _safe_join(base: Path, relative_path: str) -> Path:
    """Join a content path to a folder, refusing paths that leave it."""
    parts = PurePosixPath(relative_path.replace('\\', '/')).parts
    if not parts or '..' in parts or parts[0] == '/':
        raise CurationImportError(f"Invalid content path: {relative_path}")
    return base.joinpath(*parts)


def _rollback(
    content_dir: Optional[Path],
    stored_images: List[Path],
    images: GameImageCollection
) -> None:
    """Remove what a failed import already put into the library."""
    if content_dir is not None:
        shutil.rmtree(content_dir, ignore_errors=True)
        logger.debug(f"Rolled back content folder {content_dir}")
    for path in stored_images:
        try:
            images.remove_image(path)
        except OSError as e:
            logger.warning(f"Failed to roll back image {path}: {e}")
