"""Tagged results for parse and index operations."""

from dataclasses import dataclass, field
from typing import Generic, List, TypeVar

T = TypeVar('T')


@dataclass
class Parsed(Generic[T]):
    """
    A value together with the non-fatal problems found while producing it.

    Parsing and indexing never raise for bad input; they return whatever
    could be recovered plus a list of human readable diagnostics.
    """
    value: T
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when no problems were recorded."""
        return not self.errors
