"""Pending curation store.

Holds the curations waiting to be imported. Curations change only through
dispatched actions, which are applied one at a time in the order they are
dispatched; subscribers are called after each applied action.
"""

import logging
from typing import Any, Callable, Iterator, List, Optional

from curimport.curation.models import Curation
from .actions import (
    AddCuration,
    EditCurationMeta,
    LockAllCurations,
    LockCuration,
    RemoveCuration,
)

logger = logging.getLogger(__name__)


class CurationStoreError(Exception):
    """Invalid store action (unknown or duplicate key)."""
    pass


class CurationLockedError(CurationStoreError):
    """Attempt to edit a curation while an import holds its lock."""
    pass


class CurationStore:
    """Ordered collection of pending curations.

    Example:
        >>> store = CurationStore()
        >>> store.subscribe(lambda action: print(type(action).__name__))
        >>> store.dispatch(AddCuration(curation))
        AddCuration
    """

    def __init__(self):
        """Initialize an empty store."""
        self._curations: List[Curation] = []
        self._subscribers: List[Callable[[Any], None]] = []

    @property
    def curations(self) -> List[Curation]:
        """Snapshot of the pending curations, in insertion order."""
        return list(self._curations)

    def __len__(self) -> int:
        return len(self._curations)

    def __iter__(self) -> Iterator[Curation]:
        return iter(self.curations)

    def __contains__(self, key: object) -> bool:
        return self.find(key) is not None

    def find(self, key: object) -> Optional[Curation]:
        """Return the curation with this key, or None."""
        for curation in self._curations:
            if curation.key == key:
                return curation
        return None

    def get(self, key: str) -> Curation:
        """Return the curation with this key.

        Raises:
            CurationStoreError: If no curation has this key
        """
        curation = self.find(key)
        if curation is None:
            raise CurationStoreError(f"No curation with key {key}")
        return curation

    def subscribe(self, callback: Callable[[Any], None]) -> None:
        """Call ``callback(action)`` after every applied action."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[Any], None]) -> None:
        try:
            self._subscribers.remove(callback)
        except ValueError:
            logger.warning("Callback not subscribed to curation store")

    def dispatch(self, action: Any) -> None:
        """Apply an action and notify subscribers.

        Args:
            action: One of the actions in curimport.workflow.actions

        Raises:
            CurationStoreError: If the action refers to an unknown key, adds a
                duplicate key or is not a known action
            CurationLockedError: If the action edits a locked curation
        """
        if isinstance(action, AddCuration):
            self._add(action.curation)
        elif isinstance(action, RemoveCuration):
            self._curations.remove(self.get(action.key))
            logger.debug(f"Removed curation {action.key}")
        elif isinstance(action, LockCuration):
            self.get(action.key).locked = action.lock
            logger.debug(f"{'Locked' if action.lock else 'Unlocked'} curation {action.key}")
        elif isinstance(action, LockAllCurations):
            for curation in self._curations:
                curation.locked = action.lock
            logger.debug(f"{'Locked' if action.lock else 'Unlocked'} all {len(self._curations)} curations")
        elif isinstance(action, EditCurationMeta):
            self._edit_meta(action)
        else:
            raise CurationStoreError(f"Unknown action: {type(action).__name__}")

        self._notify(action)

    def _add(self, curation: Curation) -> None:
        if self.find(curation.key) is not None:
            raise CurationStoreError(f"Duplicate curation key: {curation.key}")
        self._curations.append(curation)
        logger.debug(f"Added curation {curation.key} ({curation.source})")

    def _edit_meta(self, action: EditCurationMeta) -> None:
        curation = self.get(action.key)
        if curation.locked:
            raise CurationLockedError(f"Curation {action.key} is locked by an import")
        curation.meta[action.field] = action.value

    def _notify(self, action: Any) -> None:
        for callback in self._subscribers:
            try:
                callback(action)
            except Exception as e:
                logger.error(
                    f"Error in curation store subscriber for {type(action).__name__}: {e}",
                    exc_info=True
                )
