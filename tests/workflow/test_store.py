import pytest

from curimport.curation.models import Curation, CurationMeta
from curimport.workflow.actions import (
    AddCuration,
    EditCurationMeta,
    LockAllCurations,
    LockCuration,
    RemoveCuration,
)
from curimport.workflow.store import CurationLockedError, CurationStore, CurationStoreError


def new_curation(title='X'):
    return Curation.from_meta('/tmp/meta.txt', CurationMeta(game={'title': title}))


@pytest.mark.unit
def test_add_and_remove():
    store = CurationStore()
    curation = new_curation()

    store.dispatch(AddCuration(curation))
    assert curation.key in store
    assert len(store) == 1

    store.dispatch(RemoveCuration(curation.key))
    assert curation.key not in store


@pytest.mark.unit
def test_duplicate_key_rejected():
    store = CurationStore()
    curation = new_curation()
    store.dispatch(AddCuration(curation))

    with pytest.raises(CurationStoreError):
        store.dispatch(AddCuration(curation))


@pytest.mark.unit
def test_unknown_key_rejected():
    store = CurationStore()

    with pytest.raises(CurationStoreError):
        store.dispatch(RemoveCuration('missing'))


@pytest.mark.unit
def test_lock_and_lock_all():
    store = CurationStore()
    a, b = new_curation('A'), new_curation('B')
    store.dispatch(AddCuration(a))
    store.dispatch(AddCuration(b))

    store.dispatch(LockCuration(a.key, True))
    assert a.locked and not b.locked

    store.dispatch(LockAllCurations(True))
    assert a.locked and b.locked

    store.dispatch(LockCuration(b.key, False))
    assert a.locked and not b.locked


@pytest.mark.unit
def test_edit_rejected_while_locked():
    store = CurationStore()
    curation = new_curation()
    store.dispatch(AddCuration(curation))

    store.dispatch(EditCurationMeta(curation.key, 'title', 'Y'))
    assert curation.meta['title'] == 'Y'

    store.dispatch(LockCuration(curation.key, True))
    with pytest.raises(CurationLockedError):
        store.dispatch(EditCurationMeta(curation.key, 'title', 'Z'))
    assert curation.meta['title'] == 'Y'


@pytest.mark.unit
def test_subscribers_see_actions_in_order():
    store = CurationStore()
    seen = []
    store.subscribe(lambda action: seen.append(type(action).__name__))
    curation = new_curation()

    store.dispatch(AddCuration(curation))
    store.dispatch(LockCuration(curation.key, True))
    store.dispatch(RemoveCuration(curation.key))

    assert seen == ['AddCuration', 'LockCuration', 'RemoveCuration']


@pytest.mark.unit
def test_failing_subscriber_does_not_break_dispatch():
    store = CurationStore()
    seen = []

    def broken(action):
        raise RuntimeError("boom")

    store.subscribe(broken)
    store.subscribe(seen.append)
    store.dispatch(AddCuration(new_curation()))

    assert len(seen) == 1
    assert len(store) == 1

    store.unsubscribe(broken)
    store.unsubscribe(broken)


@pytest.mark.unit
def test_unknown_action_rejected():
    with pytest.raises(CurationStoreError):
        CurationStore().dispatch(object())


@pytest.mark.unit
def test_curations_is_a_snapshot():
    store = CurationStore()
    store.dispatch(AddCuration(new_curation()))

    snapshot = store.curations
    snapshot.clear()

    assert len(store) == 1
