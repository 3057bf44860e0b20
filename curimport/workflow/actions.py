"""State transitions of the pending curation store.

Actions are immutable dataclasses dispatched to CurationStore. The import
workflow emits them instead of touching curations directly.
"""

from dataclasses import dataclass

from curimport.curation.models import Curation


@dataclass(frozen=True)
class AddCuration:
    """Add a newly loaded curation to the store.

    Attributes:
        curation: Curation to add (its key must not be in the store yet)
    """
    curation: Curation


@dataclass(frozen=True)
class RemoveCuration:
    """Remove a curation from the store (after a successful import).

    Attributes:
        key: Key of the curation
    """
    key: str


@dataclass(frozen=True)
class LockCuration:
    """Lock or unlock a single curation.

    Attributes:
        key: Key of the curation
        lock: True to lock, False to unlock
    """
    key: str
    lock: bool


@dataclass(frozen=True)
class LockAllCurations:
    """Lock or unlock every curation in the store.

    Attributes:
        lock: True to lock, False to unlock
    """
    lock: bool


@dataclass(frozen=True)
class EditCurationMeta:
    """Set one metadata field of an unlocked curation.

    Attributes:
        key: Key of the curation
        field: Metadata field name (e.g. 'title')
        value: New value
    """
    key: str
    field: str
    value: str
