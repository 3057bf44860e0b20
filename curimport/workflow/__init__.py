"""Workflow coordination package."""

from .actions import AddCuration, EditCurationMeta, LockAllCurations, LockCuration, RemoveCuration
from .store import CurationStore, CurationStoreError, CurationLockedError
from .pool import IndexingPool, index_sources
from .importer import CurationImportError, import_curation
from .progress import BatchImportResult, ImportProgress
from .orchestrator import ImportOrchestrator

__all__ = [
    "AddCuration",
    "EditCurationMeta",
    "LockAllCurations",
    "LockCuration",
    "RemoveCuration",
    "CurationStore",
    "CurationStoreError",
    "CurationLockedError",
    "IndexingPool",
    "index_sources",
    "CurationImportError",
    "import_curation",
    "BatchImportResult",
    "ImportProgress",
    "ImportOrchestrator",
]
