"""
Async pool for indexing curation sources

Indexes several sources at once with a bounded number of concurrent tasks.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Union

from curimport.curation.indexer import IndexOptions, index_source_async
from curimport.curation.models import CurationIndex, SourceType

logger = logging.getLogger(__name__)


class IndexingPool:
    """
    Runs independent indexing jobs concurrently

    Each job gets its own task; a semaphore bounds how many run at once.
    A job that fails is turned into a result by ``on_error`` so it never
    affects its siblings. Results come back in submission order.

    Example:
        pool = IndexingPool(max_workers=4)
        indexes = await pool.map(paths, index_one, on_error=lambda path, e: CurationIndex(errors=[str(e)]))
    """

    def __init__(self, max_workers: int = 4):
        """
        Initialize indexing pool

        Args:
            max_workers: Maximum number of sources indexed at the same time
        """
        self.max_workers = max(1, int(max_workers))
        self.semaphore = asyncio.Semaphore(self.max_workers)
        self._active_count = 0

        logger.debug(f"Indexing pool initialized: {self.max_workers} concurrent tasks")

    async def map(
        self,
        items: Sequence[Any],
        worker: Callable[[Any], Awaitable[Any]],
        on_error: Callable[[Any, Exception], Any]
    ) -> List[Any]:
        """
        Run ``worker`` for every item and collect the results

        Args:
            items: Work items
            worker: Async function processing one item
            on_error: Builds the result for an item whose worker raised

        Returns:
            One result per item, in the order of ``items``
        """
        async def run_one(item):
            async with self.semaphore:
                self._active_count += 1
                try:
                    return await worker(item)
                except Exception as e:
                    logger.error(f"Indexing failed for {item}: {e}")
                    return on_error(item, e)
                finally:
                    self._active_count -= 1

        return list(await asyncio.gather(*(run_one(item) for item in items)))

    def get_stats(self) -> dict:
        """
        Get pool statistics

        Returns:
            Dictionary with active and maximum task counts
        """
        return {
            'active_workers': self._active_count,
            'max_workers': self.max_workers,
        }


async def index_sources(
    sources: Sequence[Union[str, Path]],
    source_type: SourceType,
    options: Optional[IndexOptions] = None,
    max_workers: int = 4
) -> List[CurationIndex]:
    """
    Index several archives or folders concurrently

    Args:
        sources: Archive or folder paths
        source_type: SourceType.ARCHIVE or SourceType.FOLDER
        options: Naming conventions for content and media
        max_workers: Maximum number of sources indexed at the same time

    Returns:
        One CurationIndex per source, in the order of ``sources``
    """
    pool = IndexingPool(max_workers)
    logger.info(f"Indexing {len(sources)} {source_type.value} source(s)")

    def failed_index(source, error: Exception) -> CurationIndex:
        return CurationIndex(errors=[f"Failed to index {source}: {error}"])

    return await pool.map(
        sources,
        lambda source: index_source_async(source, source_type, options),
        on_error=failed_index
    )
