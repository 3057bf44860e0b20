"""
Import orchestrator for curimport.

Coordinates the complete curation workflow:
1. Index archives/folders (concurrently) or parse loose meta files
2. Fill missing metadata from library defaults
3. Hold curations in the pending store
4. Import curations one at a time into the library
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from ..config.loader import get_config_value
from ..curation.defaults import GameMetaDefaults, apply_meta_defaults, get_default_meta_values
from ..curation.indexer import IndexOptions, load_meta_file
from ..curation.models import Curation, SourceType
from ..library.catalog import GameCatalog
from ..library.images import GameImageCollection
from .actions import AddCuration, LockAllCurations, LockCuration, RemoveCuration
from .importer import import_curation
from .pool import index_sources
from .progress import BatchImportResult, ImportProgress
from .store import CurationStore

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ImportOrchestrator:
    """
    Orchestrates loading and importing curations.

    Indexing runs concurrently; imports never do. An ``asyncio.Lock`` keeps
    at most one import in flight across every caller, so a single import
    requested during a batch waits for the batch to finish.

    Example:
        orchestrator = ImportOrchestrator(store, catalog, images, library_root, defaults=defaults)
        await orchestrator.load_archives(paths)
        result = await orchestrator.import_all()
    """

    def __init__(
        self,
        store: CurationStore,
        catalog: GameCatalog,
        images: GameImageCollection,
        library_root: Path,
        defaults: Optional[GameMetaDefaults] = None,
        config: Optional[Dict[str, Any]] = None,
        staging_root: Optional[Path] = None
    ):
        """
        Initialize import orchestrator.

        Args:
            store: Pending curation store
            catalog: Game catalog imports are registered in
            images: Image collection for thumbnails and screenshots
            library_root: Library root folder
            defaults: Library defaults applied to loaded metadata (None: no defaults)
            config: Configuration dictionary (indexing and import sections are used)
            staging_root: Staging folder (default: <library>/.staging)
        """
        config = config or {}

        self.store = store
        self.catalog = catalog
        self.images = images
        self.library_root = Path(library_root)
        self.defaults = defaults
        self.staging_root = staging_root

        self.index_options = IndexOptions.from_config(config)
        self.max_workers = get_config_value(config, 'indexing.max_workers', 4)
        self.remove_staged = get_config_value(config, 'import.remove_staged', True)
        self.validate_images = get_config_value(config, 'import.validate_images', True)

        self.progress = ImportProgress()
        self._import_lock = asyncio.Lock()

    @staticmethod
    async def compute_defaults(catalog: GameCatalog) -> GameMetaDefaults:
        """Derive the defaults table from the games already in the catalog."""
        games = await asyncio.to_thread(catalog.list_games)
        defaults = get_default_meta_values(games)
        logger.info(
            f"Library defaults from {len(games)} games: platform={defaults.platform!r}, "
            f"language={defaults.language!r}, playMode={defaults.play_mode!r}, "
            f"status={defaults.status!r}"
        )
        return defaults

    async def load_archives(self, paths: Sequence[PathLike]) -> List[Curation]:
        """Index zip archives concurrently and add them to the store."""
        return await self._load_sources(paths, SourceType.ARCHIVE)

    async def load_folders(self, paths: Sequence[PathLike]) -> List[Curation]:
        """Index curation folders concurrently and add them to the store."""
        return await self._load_sources(paths, SourceType.FOLDER)

    async def load_meta_files(self, paths: Sequence[PathLike]) -> List[Curation]:
        """
        Parse loose meta files and add them to the store.

        The resulting curations carry metadata only (no content or media).
        """
        curations = []
        for path in paths:
            parsed = await asyncio.to_thread(load_meta_file, path)
            # Diagnostics only block the import when nothing could be parsed
            if parsed.value.game:
                for error in parsed.errors:
                    logger.warning(f"{path}: {error}")
                errors = []
            else:
                errors = parsed.errors or [f"No metadata found in {path}"]
            curation = Curation.from_meta(str(path), parsed.value, errors)
            curations.append(self._add_curation(curation))
        return curations

    async def _load_sources(self, paths: Sequence[PathLike], source_type: SourceType) -> List[Curation]:
        indexes = await index_sources(paths, source_type, self.index_options, self.max_workers)
        return [
            self._add_curation(Curation.from_index(str(path), source_type, index))
            for path, index in zip(paths, indexes)
        ]

    def _add_curation(self, curation: Curation) -> Curation:
        apply_meta_defaults(curation.meta, self.defaults)
        for add_app in curation.add_apps:
            # Extras and Message entries already carry their own path
            if not add_app.meta.get('applicationPath'):
                add_app.meta['applicationPath'] = curation.meta.get('applicationPath', '')

        self.store.dispatch(AddCuration(curation))

        if curation.errors:
            logger.warning(
                f"Curation '{curation.title}' from {curation.source} has "
                f"{len(curation.errors)} error(s): " + "; ".join(curation.errors)
            )
        else:
            logger.info(f"Loaded curation '{curation.title}' ({curation.key})")
        return curation

    async def import_one(self, key: str) -> bool:
        """
        Import a single curation from the store.

        On success the curation is removed from the store; on failure it is
        unlocked again.

        Args:
            key: Curation key

        Returns:
            True if the curation was imported
        """
        async with self._import_lock:
            curation = self.store.get(key)
            if curation.locked:
                logger.warning(f"Curation {key} is already being imported")
                return False
            self.store.dispatch(LockCuration(key, True))
            try:
                await self._import(curation)
            except Exception as e:
                logger.error(f"Import FAILED! (id: {key}) {e}")
                self.store.dispatch(LockCuration(key, False))
                return False
            self.store.dispatch(RemoveCuration(key))
            return True

    async def import_all(self, keys: Optional[Iterable[str]] = None) -> BatchImportResult:
        """
        Import curations one after another.

        Every target curation is locked first. Failures are isolated: a
        failed curation is unlocked and the batch moves on to the next one.

        Args:
            keys: Curations to import (default: every curation in the store)

        Returns:
            BatchImportResult with total, succeeded and failed counts
        """
        async with self._import_lock:
            if keys is None:
                targets = self.store.curations
                self.store.dispatch(LockAllCurations(True))
            else:
                targets = [self.store.get(key) for key in keys]
                for curation in targets:
                    self.store.dispatch(LockCuration(curation.key, True))

            self.progress.start_batch(len(targets))

            for curation in targets:
                try:
                    await self._import(curation)
                except Exception as e:
                    self.progress.log_curation(curation.key, curation.title, 'failed', str(e))
                    self.store.dispatch(LockCuration(curation.key, False))
                    continue
                self.progress.log_curation(curation.key, curation.title, 'success')
                self.store.dispatch(RemoveCuration(curation.key))

            return self.progress.finish_batch()

    async def _import(self, curation: Curation) -> None:
        """Run the blocking import of one curation in a worker thread."""
        await asyncio.to_thread(
            import_curation,
            curation,
            self.catalog,
            self.images,
            library_root=self.library_root,
            staging_root=self.staging_root,
            remove_staged=self.remove_staged,
            validate_images=self.validate_images,
        )
