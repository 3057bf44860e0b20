"""
Readers for curation sources.

A reader lists the files of a source and reads them by entry name, where an
entry name is a posix path relative to the source root. Archives are read
with zipfile, folders straight from the filesystem.
"""

import logging
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import List, Union

from .models import SourceType

logger = logging.getLogger(__name__)


class SourceError(Exception):
    """A curation source cannot be opened or read."""
    pass


class FolderReader:
    """Reads a curation folder."""

    def __init__(self, root: Path):
        self.root = Path(root)
        if not self.root.is_dir():
            raise SourceError(f"Curation folder not found: {self.root}")

    def list_entries(self) -> List[str]:
        """Return all files below the root as sorted posix paths."""
        try:
            return sorted(
                path.relative_to(self.root).as_posix()
                for path in self.root.rglob('*')
                if path.is_file()
            )
        except OSError as e:
            raise SourceError(f"Failed to scan curation folder {self.root}: {e}")

    def entry_size(self, entry: str) -> int:
        return self._resolve(entry).stat().st_size

    def read_bytes(self, entry: str) -> bytes:
        return self._resolve(entry).read_bytes()

    def read_text(self, entry: str) -> str:
        return self.read_bytes(entry).decode('utf-8-sig')

    def _resolve(self, entry: str) -> Path:
        path = (self.root / entry).resolve()
        if not path.is_relative_to(self.root.resolve()):
            raise SourceError(f"Entry escapes curation folder: {entry}")
        return path

    def close(self) -> None:
        pass

    def __enter__(self) -> 'FolderReader':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class ArchiveReader:
    """Reads a zip curation archive."""

    def __init__(self, archive_path: Path):
        self.archive_path = Path(archive_path)
        try:
            self._zip = zipfile.ZipFile(self.archive_path)
        except FileNotFoundError:
            raise SourceError(f"Curation archive not found: {self.archive_path}")
        except zipfile.BadZipFile as e:
            raise SourceError(f"Not a valid zip archive: {self.archive_path} ({e})")
        except OSError as e:
            raise SourceError(f"Failed to open curation archive {self.archive_path}: {e}")

    def list_entries(self) -> List[str]:
        """Return all file entries as sorted posix paths."""
        entries = []
        for info in self._zip.infolist():
            if info.is_dir():
                continue
            name = info.filename.replace('\\', '/')
            # Never hand out names that point outside the archive root
            if name.startswith('/') or '..' in PurePosixPath(name).parts:
                logger.warning(f"Skipping unsafe archive entry in {self.archive_path.name}: {name}")
                continue
            entries.append(name)
        return sorted(entries)

    def entry_size(self, entry: str) -> int:
        return self._info(entry).file_size

    def read_bytes(self, entry: str) -> bytes:
        # Encrypted entries raise RuntimeError, unsupported compression NotImplementedError
        try:
            return self._zip.read(self._info(entry))
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, RuntimeError,
                NotImplementedError, EOFError, zlib.error) as e:
            raise SourceError(f"Failed to read {entry} from {self.archive_path.name}: {e}")

    def read_text(self, entry: str) -> str:
        return self.read_bytes(entry).decode('utf-8-sig')

    def _info(self, entry: str) -> zipfile.ZipInfo:
        try:
            return self._zip.getinfo(entry)
        except KeyError:
            # Archives written on Windows may use backslashes
            try:
                return self._zip.getinfo(entry.replace('/', '\\'))
            except KeyError:
                raise SourceError(f"Entry not found in {self.archive_path.name}: {entry}")

    def close(self) -> None:
        self._zip.close()

    def __enter__(self) -> 'ArchiveReader':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


SourceReader = Union[FolderReader, ArchiveReader]


def open_reader(source: Union[str, Path], source_type: SourceType) -> SourceReader:
    """
    Open a reader for a curation source.

    Args:
        source: Archive or folder path
        source_type: SourceType.ARCHIVE or SourceType.FOLDER

    Returns:
        Reader for the source (use as a context manager)

    Raises:
        SourceError: If the source cannot be opened
    """
    if source_type == SourceType.ARCHIVE:
        return ArchiveReader(Path(source))
    if source_type == SourceType.FOLDER:
        return FolderReader(Path(source))
    raise SourceError(f"Source type has no content to read: {source_type.value}")
