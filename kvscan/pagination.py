"""
Pagination primitives for kvscan.

This module provides the immutable batch a store returns for one scan
round-trip, along with the continuation token conventions shared by
cursors and store adapters.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")

# Position a scan starts from.
START = 0

# Values a store may return to signal "no further state to resume from".
_TERMINAL_TOKENS: tuple[Any, ...] = (0, "0", b"0", "", b"")


def is_terminal_token(token: Any) -> bool:
    """Returns True if the token means the store has nothing left to scan."""
    if token is None:
        return True
    # bool is an int subclass; False must not read as the 0 sentinel
    if isinstance(token, bool):
        return False
    return any(type(token) is type(t) and token == t for t in _TERMINAL_TOKENS)


@dataclass(frozen=True)
class ScanBatch(Generic[T]):
    """
    Represents the result of a single scan round-trip.

    Attributes:
        token: Continuation token for the next round-trip. A terminal value
               (None, 0, "0", b"0", "" or b"") means the scan is complete.
        items: Items returned by this round-trip, in store order. May be empty
               even when the scan is not complete.
    """

    token: Any
    items: tuple[T, ...] = field(default_factory=tuple)

    def __init__(self, token: Any, items: Iterable[T] | None = None) -> None:
        object.__setattr__(self, "token", token)
        object.__setattr__(self, "items", tuple(items) if items is not None else ())

    @property
    def is_finished(self) -> bool:
        """Returns True if the store signaled there is nothing left to scan."""
        return is_terminal_token(self.token)

    @property
    def has_more(self) -> bool:
        """Returns True if the scan can be resumed from this batch's token."""
        return not self.is_finished

    @property
    def count(self) -> int:
        """Number of items in this batch."""
        return len(self.items)
