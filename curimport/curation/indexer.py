"""
Curation source indexing.

Locates the meta file, content folder and media of a curation archive or
folder and parses the meta file. Problems are recorded on the returned
CurationIndex instead of being raised.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ..config.loader import get_config_value
from .meta_parser import parse_curation_meta, parse_curation_meta_yaml
from .models import ContentFile, CurationIndex, CurationMeta, MediaAsset, SourceType
from .result import Parsed
from .sources import SourceError, SourceReader, open_reader

logger = logging.getLogger(__name__)

# Meta file names in order of preference
META_FILENAMES: Tuple[str, ...] = ('meta.yaml', 'meta.yml', 'meta.txt')

IMAGE_EXTENSIONS: Tuple[str, ...] = ('png', 'jpg', 'jpeg', 'gif', 'bmp', 'webp')


@dataclass
class IndexOptions:
    """Naming conventions used to find content and media."""
    content_folder: str = 'content'
    thumbnail_names: List[str] = field(default_factory=lambda: ['logo'])
    screenshot_names: List[str] = field(default_factory=lambda: ['ss'])

    @classmethod
    def from_config(cls, config: dict) -> 'IndexOptions':
        return cls(
            content_folder=get_config_value(config, 'indexing.content_folder', 'content'),
            thumbnail_names=list(get_config_value(config, 'indexing.thumbnail_names', ['logo'])),
            screenshot_names=list(get_config_value(config, 'indexing.screenshot_names', ['ss'])),
        )


def index_curation_archive(
    archive_path: Union[str, Path],
    options: Optional[IndexOptions] = None
) -> CurationIndex:
    """
    Index a zip curation archive.

    Args:
        archive_path: Path to the archive
        options: Naming conventions (defaults apply when None)

    Returns:
        CurationIndex; an unreadable archive yields an empty index with an error
    """
    return _index_source(archive_path, SourceType.ARCHIVE, options)


def index_curation_folder(
    folder_path: Union[str, Path],
    options: Optional[IndexOptions] = None
) -> CurationIndex:
    """
    Index a curation folder.

    Args:
        folder_path: Path to the folder
        options: Naming conventions (defaults apply when None)

    Returns:
        CurationIndex; a missing folder yields an empty index with an error
    """
    return _index_source(folder_path, SourceType.FOLDER, options)


def _index_source(
    source: Union[str, Path],
    source_type: SourceType,
    options: Optional[IndexOptions]
) -> CurationIndex:
    """Open a source and index it, turning reader failures into errors."""
    options = options or IndexOptions()
    index = CurationIndex()

    try:
        with open_reader(source, source_type) as reader:
            _index_entries(reader, options, index)
    except SourceError as e:
        index.errors.append(str(e))
    except OSError as e:
        index.errors.append(f"Failed to read {source}: {e}")

    if index.errors:
        logger.warning(f"Indexed {source} with {len(index.errors)} error(s)")
    else:
        logger.info(
            f"Indexed {source}: '{index.meta.game.get('title', '')}', "
            f"{len(index.content)} content file(s)"
        )
    return index


def _index_entries(reader: SourceReader, options: IndexOptions, index: CurationIndex) -> None:
    """Fill the index from the entries of an open reader."""
    entries = reader.list_entries()
    if not entries:
        index.errors.append("Curation is empty")
        return

    root, meta_entry = _find_meta_file(entries, options.content_folder, index.errors)
    if meta_entry is None:
        return

    # Meta file
    parsed = read_meta_entry(reader, meta_entry)
    index.meta = parsed.value
    if parsed.errors and not parsed.value.game:
        # Nothing usable could be read from the meta file
        index.errors.extend(f"{PurePosixPath(meta_entry).name}: {e}" for e in parsed.errors)
    else:
        for error in parsed.errors:
            logger.warning(f"{meta_entry}: {error}")

    # Content folder
    content_prefix = f"{root}{options.content_folder}/"
    for entry in entries:
        if entry.lower().startswith(content_prefix.lower()):
            index.content.append(ContentFile(
                entry=entry,
                relative_path=entry[len(content_prefix):],
                size=reader.entry_size(entry),
            ))
    if not index.content:
        index.errors.append(f"Content folder '{options.content_folder}' is missing or empty")

    # Media next to the meta file
    index.thumbnail = _find_image(entries, root, options.thumbnail_names)
    index.screenshot = _find_image(entries, root, options.screenshot_names)


def _find_meta_file(
    entries: List[str],
    content_folder: str,
    errors: List[str]
) -> Tuple[str, Optional[str]]:
    """
    Locate the meta file.

    The curation root is the directory that holds the meta file: either the
    source root or a single top-level folder (archives are often zipped with
    their folder).

    Returns:
        Tuple of (root prefix with trailing '/' or '', meta entry or None)
    """
    candidates: Dict[str, List[str]] = {}
    for entry in entries:
        path = PurePosixPath(entry)
        if len(path.parts) > 2 or path.name.lower() not in META_FILENAMES:
            continue
        root = f"{path.parts[0]}/" if len(path.parts) == 2 else ''
        candidates.setdefault(root, []).append(entry)

    if '' in candidates:
        # A meta file inside the content folder is game data, not a second root
        candidates = {r: m for r, m in candidates.items()
                      if r.lower() != f"{content_folder}/".lower()}

    if not candidates:
        errors.append(f"Meta file is missing (expected one of: {', '.join(META_FILENAMES)})")
        return '', None

    if len(candidates) > 1:
        roots = ', '.join(sorted(r.rstrip('/') or '.' for r in candidates))
        errors.append(f"Ambiguous curation root, meta files found in: {roots}")
        return '', None

    root, metas = next(iter(candidates.items()))
    metas.sort(key=lambda e: META_FILENAMES.index(PurePosixPath(e).name.lower()))
    if len(metas) > 1:
        logger.debug(f"Several meta files found, using {metas[0]}")
    return root, metas[0]


def _find_image(entries: List[str], root: str, names: Sequence[str]) -> Optional[MediaAsset]:
    """Find the first image named like one of ``names`` directly in the root."""
    wanted = [n.lower() for n in names]
    matches = []
    for entry in entries:
        if not entry.lower().startswith(root.lower()):
            continue
        path = PurePosixPath(entry[len(root):])
        if len(path.parts) != 1:
            continue
        extension = path.suffix.lower().lstrip('.')
        if path.stem.lower() in wanted and extension in IMAGE_EXTENSIONS:
            matches.append((wanted.index(path.stem.lower()), IMAGE_EXTENSIONS.index(extension), entry))

    if not matches:
        return None
    _, _, entry = min(matches)
    return MediaAsset(entry=entry, extension=PurePosixPath(entry).suffix.lower().lstrip('.'))


def read_meta_entry(reader: SourceReader, entry: str) -> Parsed[CurationMeta]:
    """Read and parse a meta file entry, picking the parser by extension."""
    try:
        text = reader.read_text(entry)
    except UnicodeDecodeError as e:
        return Parsed(CurationMeta(), [f"Meta file is not valid UTF-8: {e}"])
    except (SourceError, OSError) as e:
        return Parsed(CurationMeta(), [f"Failed to read meta file: {e}"])

    return parse_meta_text(text, entry)


def parse_meta_text(text: str, filename: str) -> Parsed[CurationMeta]:
    """Parse meta text as YAML or the line format depending on ``filename``."""
    if PurePosixPath(filename.replace('\\', '/')).suffix.lower() in ('.yaml', '.yml'):
        return parse_curation_meta_yaml(text)
    return parse_curation_meta(text)


def load_meta_file(meta_path: Union[str, Path]) -> Parsed[CurationMeta]:
    """
    Read and parse a loose meta file.

    Args:
        meta_path: Path to a meta.txt or meta.yaml file

    Returns:
        Parsed CurationMeta; read failures are diagnostics
    """
    meta_path = Path(meta_path)
    try:
        text = meta_path.read_text(encoding='utf-8-sig')
    except UnicodeDecodeError as e:
        return Parsed(CurationMeta(), [f"Meta file is not valid UTF-8: {e}"])
    except OSError as e:
        return Parsed(CurationMeta(), [f"Failed to read meta file {meta_path}: {e}"])

    return parse_meta_text(text, meta_path.name)


async def index_source_async(
    source: Union[str, Path],
    source_type: SourceType,
    options: Optional[IndexOptions] = None
) -> CurationIndex:
    """Index one source in a worker thread."""
    if source_type == SourceType.ARCHIVE:
        return await asyncio.to_thread(index_curation_archive, source, options)
    if source_type == SourceType.FOLDER:
        return await asyncio.to_thread(index_curation_folder, source, options)
    raise ValueError(f"Cannot index source type: {source_type.value}")
