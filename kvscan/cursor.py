"""
Cursor-based incremental scans.

A ScanCursor turns repeated scan round-trips into a single lazy, forward-only
sequence of items. The store is reached only through a fetch function with
the contract fetch(token, options) -> ScanBatch, so the cursor knows nothing
about transports or serialization.
"""

import threading
from collections import deque
from collections.abc import Callable, Iterator
from enum import Enum
from functools import partial
from typing import Any, Generic, TypeVar

from ._logging import logger, redact_token
from .exceptions import CursorClosedError, ExhaustedCursorError, InvalidCursorStateError
from .options import NONE, ScanOptions
from .pagination import START, ScanBatch, is_terminal_token

T = TypeVar("T")

FetchFn = Callable[[Any, ScanOptions], ScanBatch[T]]
KeyFetchFn = Callable[[Any, Any, ScanOptions], ScanBatch[T]]


class CursorState(Enum):
    """
    The possible states of a ScanCursor.

    Values:
        READY: No fetch has been issued yet.
        ITERATING: At least one fetch was issued, more may follow.
        FINISHED: The store signaled completion and the buffer is drained.
        CLOSED: Closed by the caller, or made unusable by a failed fetch.
    """

    READY = "ready"
    ITERATING = "iterating"
    FINISHED = "finished"
    CLOSED = "closed"


class ScanCursor(Generic[T]):
    """
    Lazy, single-pass iterator over the results of a scan.

    Items are pulled with has_next()/next() or the iterator protocol. Whenever
    the local buffer runs dry the cursor fetches the next batch, skipping empty
    intermediate pages, until the store returns a terminal continuation token.

    Not safe for concurrent has_next()/next() calls. close() may be called
    from another thread; whatever the in-flight fetch returns or raises after
    close() is discarded.

    Usage:
        with ScanCursor(store.scan, scan_options().count(100).build()) as cursor:
            for key in cursor:
                ...
    """

    def __init__(
        self,
        fetch: FetchFn[T],
        options: ScanOptions | None = None,
        start: Any = START,
    ) -> None:
        """
        Args:
            fetch: Function issuing one scan round-trip.
            options: Count hint and match pattern sent with every fetch.
            start: Token to resume from. START begins a new scan; None is the
                   terminal sentinel and yields an empty cursor that never fetches.
        """
        self._fetch = fetch
        self._options = options if options is not None else NONE
        self._token = start
        self._buffer: deque[T] = deque()
        self._position = 0
        self._pages_fetched = 0
        self._state = CursorState.READY
        # Guards state and buffer changes that can race a close() from another thread
        self._lock = threading.Lock()
        self._closed_by_caller = False

        if start is None:
            self._state = CursorState.FINISHED

    # --- STATE INSPECTION ---

    @property
    def state(self) -> CursorState:
        return self._state

    @property
    def cursor_id(self) -> Any:
        """The continuation token the next fetch will send."""
        return self._token

    @property
    def position(self) -> int:
        """Number of items delivered to the caller so far."""
        return self._position

    @property
    def pages_fetched(self) -> int:
        return self._pages_fetched

    @property
    def buffered_count(self) -> int:
        """Number of fetched items not yet delivered. Never triggers a fetch."""
        return len(self._buffer)

    @property
    def options(self) -> ScanOptions:
        return self._options

    @property
    def is_closed(self) -> bool:
        return self._state is CursorState.CLOSED

    # --- FETCHING ---

    def _scan_once(self) -> None:
        token = self._token
        logger.debug(
            "Fetching scan batch",
            extra={
                "token_hash": redact_token(token),
                "count": self._options.count,
                "has_match": self._options.match is not None,
                "page": self._pages_fetched + 1,
            },
        )

        try:
            batch = self._fetch(token, self._options)
        except Exception as e:
            with self._lock:
                abandoned = self._closed_by_caller
                self._state = CursorState.CLOSED
            if abandoned:
                logger.debug(
                    "Ignoring scan fetch failure after close",
                    extra={"error": type(e).__name__},
                )
                return
            logger.warning(
                "Scan fetch failed, cursor closed",
                extra={
                    "token_hash": redact_token(token),
                    "position": self._position,
                    "error": type(e).__name__,
                },
            )
            raise

        # Read the batch before taking the lock; its accessors may call close()
        next_token = batch.token
        items = batch.items

        with self._lock:
            if self._state is CursorState.CLOSED:
                logger.debug("Discarding scan batch fetched after close")
                return
            self._token = next_token
            self._buffer.extend(items)
            self._pages_fetched += 1
            self._state = CursorState.ITERATING

    def _fill_buffer(self) -> None:
        """Fetches until an item is buffered or the scan can make no more progress."""
        while not self._buffer:
            if self._state in (CursorState.FINISHED, CursorState.CLOSED):
                return
            if self._state is CursorState.ITERATING and is_terminal_token(self._token):
                self._finish()
                return
            self._scan_once()

    def _finish(self) -> None:
        with self._lock:
            if self._state is CursorState.CLOSED:
                return
            self._state = CursorState.FINISHED
        logger.info(
            "Scan finished",
            extra={"items": self._position, "pages": self._pages_fetched},
        )

    # --- PULL INTERFACE ---

    def open(self) -> "ScanCursor[T]":
        """
        Issues the first fetch eagerly instead of on the first pull.

        Raises:
            InvalidCursorStateError: If the cursor was already opened, finished or closed.
        """
        # Started at the terminal sentinel: nothing to fetch
        if self._state is CursorState.FINISHED and self._pages_fetched == 0:
            return self
        if self._state is not CursorState.READY:
            raise InvalidCursorStateError(
                self._state.value, "Cursor can only be opened in state 'ready'"
            )
        logger.info(
            "Starting scan iteration",
            extra={
                "token_hash": redact_token(self._token),
                "count": self._options.count,
                "match": self._options.match,
            },
        )
        self._fill_buffer()
        return self

    def has_next(self) -> bool:
        """
        Returns True if another item is available, fetching from the store if needed.
        Returns False once the store signaled completion and all items were delivered,
        or after close().
        """
        if self._closed_by_caller:
            return False
        if self._buffer:
            return True
        if self._state is CursorState.READY:
            return self.open().has_next()
        self._fill_buffer()
        return bool(self._buffer)

    def next(self) -> T:
        """
        Returns the next item of the scan.

        Raises:
            CursorClosedError: If the cursor was closed.
            ExhaustedCursorError: If the scan has no more items.
            Any exception raised by the fetch function, unchanged.
        """
        if not self.has_next():
            if self._state is CursorState.CLOSED:
                raise CursorClosedError()
            raise ExhaustedCursorError(position=self._position)

        with self._lock:
            if self._closed_by_caller:
                raise CursorClosedError()
            item = self._buffer.popleft()
            self._position += 1

        if (
            not self._buffer
            and self._state is CursorState.ITERATING
            and is_terminal_token(self._token)
        ):
            self._finish()
        return item

    def close(self) -> None:
        """
        Stops the scan and drops any buffered items. Safe to call repeatedly
        and from outside the iterating thread.
        """
        with self._lock:
            self._closed_by_caller = True
            self._buffer.clear()
            if self._state is CursorState.CLOSED:
                return
            self._state = CursorState.CLOSED
        logger.info(
            "Cursor closed",
            extra={"items": self._position, "pages": self._pages_fetched},
        )

    # --- PYTHON PROTOCOLS ---

    def __iter__(self) -> Iterator[T]:
        return self

    def __next__(self) -> T:
        if not self.has_next():
            raise StopIteration
        return self.next()

    def __enter__(self) -> "ScanCursor[T]":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self._state.value}, "
            f"position={self._position}, pages={self._pages_fetched})"
        )


class KeyBoundCursor(ScanCursor[T]):
    """
    A ScanCursor scanning the members of a single key (hash fields, set members).
    The fetch function receives the bound key as its first argument.
    """

    def __init__(
        self,
        key: Any,
        fetch: KeyFetchFn[T],
        options: ScanOptions | None = None,
        start: Any = START,
    ) -> None:
        super().__init__(partial(fetch, key), options, start)
        self.key = key

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self.key!r}, {self._state.value}, "
            f"position={self._position}, pages={self._pages_fetched})"
        )
