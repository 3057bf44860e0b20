"""
Progress tracking for import batches.

Records the outcome of every curation in a batch and logs a summary when
the batch is done.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger(__name__)


@dataclass
class CurationProgress:
    """Outcome of one curation import."""
    key: str
    title: str
    status: str  # 'success', 'failed'
    detail: str = ""


@dataclass
class BatchImportResult:
    """Aggregate result of an import batch."""
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    curations: List[CurationProgress] = field(default_factory=list)

    @property
    def failures(self) -> List[CurationProgress]:
        return [c for c in self.curations if c.status == 'failed']

    @property
    def success_rate(self) -> float:
        """Share of succeeded imports in percent (0 for an empty batch)."""
        if self.total == 0:
            return 0.0
        return 100.0 * self.succeeded / self.total

    @property
    def elapsed(self) -> float:
        if self.start_time is None:
            return 0.0
        return (self.end_time or time.time()) - self.start_time


class ImportProgress:
    """
    Tracks import progress.

    Features:
    - Per-curation status with position in the batch
    - Success/failure statistics
    - Summary logged at the end of the batch
    """

    def __init__(self):
        """Initialize progress tracker."""
        self.current: Optional[BatchImportResult] = None
        self.batches: List[BatchImportResult] = []

    def start_batch(self, total: int) -> BatchImportResult:
        """
        Start tracking a new batch.

        Args:
            total: Number of curations in the batch

        Returns:
            The result object that will be filled in
        """
        self.current = BatchImportResult(total=total, start_time=time.time())
        self.batches.append(self.current)
        logger.info(f'Starting "Import All"... ({total} curations)')
        return self.current

    def log_curation(self, key: str, title: str, status: str, detail: str = "") -> None:
        """
        Record the outcome of one curation.

        Args:
            key: Curation key
            title: Curation title
            status: 'success' or 'failed'
            detail: Error description for failures
        """
        if not self.current:
            return

        if status == 'success':
            self.current.succeeded += 1
            logger.info(f"Import SUCCESSFUL! (id: {key})")
        else:
            self.current.failed += 1
            logger.error(f"Import FAILED! (id: {key}) {detail}")

        self.current.curations.append(CurationProgress(
            key=key,
            title=title,
            status=status,
            detail=detail
        ))

    def finish_batch(self) -> Optional[BatchImportResult]:
        """Finish the current batch and log its summary."""
        result = self.current
        if not result:
            return None

        result.end_time = time.time()
        logger.info(
            '"Import All" complete!\n'
            f"  Total:   {result.total}\n"
            f"  Success: {result.succeeded} ({result.success_rate:.1f}%)\n"
            f"  Failed:  {result.failed}\n"
            f"  Time:    {result.elapsed:.1f}s"
        )
        self.current = None
        return result
