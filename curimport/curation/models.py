"""
Curation data structures.

Defines the pending import unit (Curation) and the intermediate records
produced while indexing a curation source.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .keys import generate_key

# Metadata records map camelCase field names to string values
GameMeta = Dict[str, str]


class SourceType(Enum):
    """Where a curation was loaded from."""
    ARCHIVE = "archive"   # Zip archive
    FOLDER = "folder"     # Folder on disk
    META = "meta"         # Loose meta file, no content or media


@dataclass
class ContentFile:
    """A file inside the curation's content folder."""
    entry: str           # Entry name in the source reader (posix, relative to source)
    relative_path: str   # Path relative to the content folder
    size: int = 0


@dataclass
class MediaAsset:
    """A thumbnail or screenshot found next to the meta file."""
    entry: str
    extension: str       # Lowercase, without dot (e.g. 'png')


@dataclass
class CurationMeta:
    """Parsed meta file: the game's fields plus additional applications."""
    game: GameMeta = field(default_factory=dict)
    add_apps: List[GameMeta] = field(default_factory=list)


@dataclass
class CurationIndex:
    """
    Everything found while indexing one curation source.

    Indexing never raises for a bad source. Problems are collected in
    ``errors`` next to whatever could be recovered, so the operator can see
    a partially indexed curation and what is wrong with it.
    """
    meta: CurationMeta = field(default_factory=CurationMeta)
    content: List[ContentFile] = field(default_factory=list)
    thumbnail: Optional[MediaAsset] = None
    screenshot: Optional[MediaAsset] = None
    errors: List[str] = field(default_factory=list)


@dataclass
class AddApp:
    """An additional application attached to a curation."""
    key: str
    meta: GameMeta = field(default_factory=dict)


@dataclass
class Curation:
    """
    A curation waiting in the pending store to be imported.

    ``key`` is assigned once and cannot be changed afterwards. ``locked`` is
    True while an import attempt is in flight. A curation with indexing
    ``errors`` is never imported.
    """
    key: str
    source: str
    source_type: SourceType
    meta: GameMeta = field(default_factory=dict)
    add_apps: List[AddApp] = field(default_factory=list)
    content: List[ContentFile] = field(default_factory=list)
    thumbnail: Optional[MediaAsset] = None
    screenshot: Optional[MediaAsset] = None
    locked: bool = False
    errors: List[str] = field(default_factory=list)

    def __setattr__(self, name, value):
        if name == 'key' and 'key' in self.__dict__:
            raise AttributeError("Curation key is immutable")
        super().__setattr__(name, value)

    @classmethod
    def from_index(
        cls,
        source: str,
        source_type: SourceType,
        index: CurationIndex
    ) -> 'Curation':
        """
        Create a curation from an indexed archive or folder.

        Args:
            source: Archive or folder path
            source_type: SourceType.ARCHIVE or SourceType.FOLDER
            index: Result of indexing the source

        Returns:
            New Curation with fresh keys for itself and its add apps
        """
        return cls(
            key=generate_key(),
            source=source,
            source_type=source_type,
            meta=index.meta.game,
            add_apps=[AddApp(key=generate_key(), meta=m) for m in index.meta.add_apps],
            content=list(index.content),
            thumbnail=index.thumbnail,
            screenshot=index.screenshot,
            errors=list(index.errors),
        )

    @classmethod
    def from_meta(
        cls,
        source: str,
        meta: CurationMeta,
        errors: Optional[List[str]] = None
    ) -> 'Curation':
        """Create a curation from a loose meta file."""
        return cls(
            key=generate_key(),
            source=source,
            source_type=SourceType.META,
            meta=meta.game,
            add_apps=[AddApp(key=generate_key(), meta=m) for m in meta.add_apps],
            errors=list(errors or []),
        )

    @property
    def title(self) -> str:
        """Title for log messages (falls back to the key)."""
        return self.meta.get('title') or self.key

    def can_import(self) -> bool:
        """True when indexing found no problems."""
        return not self.errors
