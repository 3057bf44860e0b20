import asyncio

import pytest

from curimport.curation.defaults import get_default_meta_values
from curimport.library.catalog import LaunchBoxCatalog
from curimport.library.images import GameImageCollection
from curimport.workflow import orchestrator as orchestrator_module
from curimport.workflow.actions import LockAllCurations, LockCuration, RemoveCuration
from curimport.workflow.importer import CurationImportError
from curimport.workflow.orchestrator import ImportOrchestrator
from curimport.workflow.store import CurationStore


@pytest.fixture
def catalog(library_root):
    return LaunchBoxCatalog(library_root, host_platform='win32')


@pytest.fixture
def store():
    return CurationStore()


@pytest.fixture
def orchestrator(store, catalog, library_root):
    return ImportOrchestrator(store, catalog, GameImageCollection(library_root), library_root)


def curation_files(title, png):
    return {
        'meta.txt': f"Title: {title}\nPlatform: Flash\nLaunch Command: http://example.com/{title}.swf\n",
        f'content/example.com/{title}.swf': b'FWS',
        'logo.png': png,
    }


@pytest.mark.unit
@pytest.mark.asyncio
async def test_load_archives_adds_curations(orchestrator, store, make_curation_zip, sample_files, tmp_path):
    bad = tmp_path / 'bad.zip'
    bad.write_bytes(b'garbage')

    curations = await orchestrator.load_archives([make_curation_zip(sample_files), bad])

    assert len(store) == 2
    assert curations[0].can_import()
    assert not curations[1].can_import()
    assert store.curations == curations


@pytest.mark.unit
@pytest.mark.asyncio
async def test_load_applies_defaults(store, catalog, library_root, make_curation_folder, png_bytes):
    catalog.add_game({'id': 'existing', 'title': 'Old', 'platform': 'Flash',
                      'applicationPath': 'flashplayer.exe', 'language': 'en'}, [])
    defaults = await ImportOrchestrator.compute_defaults(catalog)
    orchestrator = ImportOrchestrator(
        store, catalog, GameImageCollection(library_root), library_root, defaults=defaults
    )
    files = {
        'meta.txt': (
            "Title: New\n"
            "Additional Applications:\n"
            "    Editor:\n"
            "        Launch Command: editor.swf\n"
            "    Extras: manuals\n"
        ),
        'content/a.swf': b'FWS',
    }

    [curation] = await orchestrator.load_folders([make_curation_folder(files)])

    assert curation.meta['platform'] == 'Flash'
    assert curation.meta['language'] == 'en'
    assert curation.meta['applicationPath'] == 'flashplayer.exe'
    assert curation.add_apps[0].meta['applicationPath'] == 'flashplayer.exe'
    assert curation.add_apps[1].meta['applicationPath'] == ':extras:'


@pytest.mark.unit
@pytest.mark.asyncio
async def test_compute_defaults_matches_catalog(catalog):
    catalog.add_game({'id': 'a', 'title': 'A', 'platform': 'HTML5', 'applicationPath': 'browser.exe'}, [])

    defaults = await ImportOrchestrator.compute_defaults(catalog)

    assert defaults == get_default_meta_values(catalog.list_games())


@pytest.mark.unit
@pytest.mark.asyncio
async def test_load_meta_files(orchestrator, store, tmp_path):
    good = tmp_path / 'good' / 'meta.txt'
    good.parent.mkdir()
    good.write_text("Title: Loose\nstray line\n")
    empty = tmp_path / 'empty' / 'meta.txt'
    empty.parent.mkdir()
    empty.write_text("nothing useful")
    missing = tmp_path / 'missing' / 'meta.yaml'

    curations = await orchestrator.load_meta_files([good, empty, missing])

    assert [c.can_import() for c in curations] == [True, False, False]
    assert curations[0].meta['title'] == 'Loose'
    assert len(store) == 3


@pytest.mark.unit
@pytest.mark.asyncio
async def test_import_all_isolates_failure(orchestrator, store, catalog, make_curation_zip, png_bytes, monkeypatch):
    paths = [make_curation_zip(curation_files(f"Game{i}", png_bytes)) for i in range(1, 6)]
    curations = await orchestrator.load_archives(paths)
    failing_key = curations[2].key

    real_import = orchestrator_module.import_curation

    def flaky_import(curation, *args, **kwargs):
        if curation.key == failing_key:
            raise CurationImportError("disk full")
        return real_import(curation, *args, **kwargs)

    monkeypatch.setattr(orchestrator_module, 'import_curation', flaky_import)

    actions = []
    store.subscribe(actions.append)

    result = await orchestrator.import_all()

    assert (result.total, result.succeeded, result.failed) == (5, 4, 1)
    assert [f.key for f in result.failures] == [failing_key]
    assert [c.key for c in store.curations] == [failing_key]
    assert store.get(failing_key).locked is False
    assert sorted(g['title'] for g in catalog.list_games()) == ['Game1', 'Game2', 'Game4', 'Game5']

    assert actions[0] == LockAllCurations(True)
    assert actions[1:] == [
        RemoveCuration(curations[0].key),
        RemoveCuration(curations[1].key),
        LockCuration(failing_key, False),
        RemoveCuration(curations[3].key),
        RemoveCuration(curations[4].key),
    ]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_import_all_counts_curations_with_index_errors_as_failed(orchestrator, store, make_curation_zip, png_bytes):
    good = make_curation_zip(curation_files("Good", png_bytes))
    no_content = make_curation_zip({'meta.txt': 'Title: Empty\n'})
    await orchestrator.load_archives([good, no_content])

    result = await orchestrator.import_all()

    assert (result.succeeded, result.failed) == (1, 1)
    assert len(store) == 1
    assert not store.curations[0].locked


@pytest.mark.unit
@pytest.mark.asyncio
async def test_import_all_selected_keys(orchestrator, store, make_curation_zip, png_bytes):
    curations = await orchestrator.load_archives(
        [make_curation_zip(curation_files(f"Game{i}", png_bytes)) for i in range(3)]
    )

    result = await orchestrator.import_all([curations[1].key])

    assert result.total == 1
    assert [c.key for c in store.curations] == [curations[0].key, curations[2].key]
    assert not any(c.locked for c in store.curations)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_import_all_empty_store(orchestrator):
    result = await orchestrator.import_all()

    assert (result.total, result.succeeded, result.failed) == (0, 0, 0)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_import_one(orchestrator, store, catalog, make_curation_zip, png_bytes):
    [ok, broken] = await orchestrator.load_archives([
        make_curation_zip(curation_files("Ok", png_bytes)),
        make_curation_zip({'meta.txt': 'Title: Broken\n'}),
    ])

    assert await orchestrator.import_one(ok.key) is True
    assert ok.key not in store
    assert catalog.has_game(ok.key)

    assert await orchestrator.import_one(broken.key) is False
    assert broken.key in store
    assert not broken.locked


@pytest.mark.unit
@pytest.mark.asyncio
async def test_imports_never_overlap(orchestrator, make_curation_zip, png_bytes, monkeypatch):
    curations = await orchestrator.load_archives(
        [make_curation_zip(curation_files(f"Game{i}", png_bytes)) for i in range(3)]
    )
    in_flight = 0
    peak = 0

    async def slow_import(curation):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1

    monkeypatch.setattr(orchestrator, '_import', slow_import)

    results = await asyncio.gather(*(orchestrator.import_one(c.key) for c in curations))

    assert results == [True, True, True]
    assert peak == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_import_all_continues_after_control_character_title(orchestrator, store, catalog, make_curation_zip, png_bytes):
    files = [curation_files(f"Game{i}", png_bytes) for i in range(1, 6)]
    files[2]['meta.txt'] = "Title: Bad\x01Game\nPlatform: Flash\nLaunch Command: http://example.com/bad.swf\n"
    curations = await orchestrator.load_archives([make_curation_zip(f) for f in files])
    bad_key = curations[2].key

    result = await orchestrator.import_all()

    assert (result.total, result.succeeded, result.failed) == (5, 4, 1)
    assert [c.key for c in store.curations] == [bad_key]
    assert not any(c.locked for c in store.curations)
    assert sorted(g['title'] for g in catalog.list_games()) == ['Game1', 'Game2', 'Game4', 'Game5']


@pytest.mark.unit
@pytest.mark.asyncio
async def test_import_one_unlocks_after_unexpected_error(orchestrator, store, make_curation_zip, png_bytes, monkeypatch):
    [curation] = await orchestrator.load_archives([make_curation_zip(curation_files("Game", png_bytes))])

    def broken_import(*args, **kwargs):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(orchestrator_module, 'import_curation', broken_import)

    assert await orchestrator.import_one(curation.key) is False
    assert curation.key in store
    assert not store.get(curation.key).locked


@pytest.mark.unit
@pytest.mark.asyncio
async def test_import_all_isolates_unexpected_errors(orchestrator, store, catalog, make_curation_zip, png_bytes, monkeypatch):
    curations = await orchestrator.load_archives(
        [make_curation_zip(curation_files(f"Game{i}", png_bytes)) for i in range(3)]
    )
    real_import = orchestrator_module.import_curation

    def flaky_import(curation, *args, **kwargs):
        if curation.key == curations[0].key:
            raise NotImplementedError("compression method")
        return real_import(curation, *args, **kwargs)

    monkeypatch.setattr(orchestrator_module, 'import_curation', flaky_import)

    result = await orchestrator.import_all()

    assert (result.succeeded, result.failed) == (2, 1)
    assert [c.key for c in store.curations] == [curations[0].key]
    assert not store.curations[0].locked


@pytest.mark.unit
def test_orchestrator_reads_config(store, catalog, library_root):
    config = {
        'indexing': {'max_workers': 2, 'content_folder': 'files'},
        'import': {'remove_staged': False},
    }

    orchestrator = ImportOrchestrator(store, catalog, GameImageCollection(library_root), library_root, config=config)

    assert orchestrator.max_workers == 2
    assert orchestrator.index_options.content_folder == 'files'
    assert orchestrator.remove_staged is False
    assert orchestrator.validate_images is True
