import logging

import pytest

from curimport.workflow.progress import BatchImportResult, ImportProgress


@pytest.mark.unit
def test_batch_statistics(caplog):
    progress = ImportProgress()
    caplog.set_level(logging.INFO)

    progress.start_batch(4)
    progress.log_curation('k1', 'One', 'success')
    progress.log_curation('k2', 'Two', 'failed', 'disk full')
    progress.log_curation('k3', 'Three', 'success')
    progress.log_curation('k4', 'Four', 'success')
    result = progress.finish_batch()

    assert (result.total, result.succeeded, result.failed) == (4, 3, 1)
    assert result.success_rate == 75.0
    assert [f.key for f in result.failures] == ['k2']
    assert result.failures[0].detail == 'disk full'
    assert 'Success: 3 (75.0%)' in caplog.text
    assert progress.current is None


@pytest.mark.unit
def test_empty_batch():
    result = BatchImportResult()

    assert result.success_rate == 0.0
    assert result.elapsed == 0.0


@pytest.mark.unit
def test_log_without_batch_is_ignored():
    progress = ImportProgress()

    progress.log_curation('k1', 'One', 'success')

    assert progress.finish_batch() is None
