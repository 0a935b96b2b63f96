"""
In-process key-value store with incremental scan support.

MemoryStore mimics the SCAN family of a remote key-value server: integer
cursors, an advisory COUNT, a MATCH pattern applied after elements are
examined, and raw bytes on the way out. It is the reference fetch
collaborator for cursors and the backing store for tests and examples.
"""

from typing import Any

from ._logging import logger, redact_token
from .converting import ConvertingCursor, as_text
from .cursor import KeyBoundCursor, ScanCursor
from .exceptions import FetchFailureError, InvalidCursorError
from .options import NONE, ScanOptions
from .pagination import START, ScanBatch

WRONG_TYPE = "WRONGTYPE Operation against a key holding the wrong kind of value"


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    return str(value).encode("utf-8")


class MemoryStore:
    """
    A dict-backed keyspace holding strings, hashes and sets.

    Every scan call examines up to `count` elements (10 by default) of a sorted
    snapshot taken at call time, so keys written between round-trips show up
    or not depending on where they sort. Elements filtered out by the pattern
    still use up the count, which is why a page can be empty mid-scan.
    """

    DEFAULT_COUNT = 10

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    # --- KEYSPACE ---

    def set(self, key: str, value: str | bytes) -> None:
        self._data[key] = value

    def get(self, key: str) -> str | bytes | None:
        value = self._data.get(key)
        if isinstance(value, (dict, set)):
            raise TypeError(WRONG_TYPE)
        return value

    def hset(self, key: str, field: str, value: str | bytes) -> None:
        current = self._data.setdefault(key, {})
        if not isinstance(current, dict):
            raise TypeError(WRONG_TYPE)
        current[field] = value

    def sadd(self, key: str, *members: str) -> int:
        """Adds members to a set and returns how many were new."""
        current = self._data.setdefault(key, set())
        if not isinstance(current, set):
            raise TypeError(WRONG_TYPE)
        before = len(current)
        current.update(members)
        return len(current) - before

    def delete(self, *keys: str) -> int:
        """Deletes keys and returns how many existed."""
        return sum(1 for key in keys if self._data.pop(key, None) is not None)

    def keys(self) -> list[str]:
        return sorted(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    # --- SCAN COMMANDS ---

    def scan(self, token: Any, options: ScanOptions = NONE) -> ScanBatch[bytes]:
        """Runs one SCAN round-trip over the keyspace."""
        next_token, window = self._window(sorted(self._data), token, options)
        return ScanBatch(next_token, [_to_bytes(k) for k in window if options.matches(k)])

    def hscan(
        self, key: str, token: Any, options: ScanOptions = NONE
    ) -> ScanBatch[tuple[bytes, bytes]]:
        """Runs one HSCAN round-trip over the fields of a hash."""
        value = self._data.get(key, {})
        if not isinstance(value, dict):
            raise FetchFailureError(WRONG_TYPE)
        next_token, window = self._window(sorted(value), token, options)
        return ScanBatch(
            next_token,
            [(_to_bytes(f), _to_bytes(value[f])) for f in window if options.matches(f)],
        )

    def sscan(self, key: str, token: Any, options: ScanOptions = NONE) -> ScanBatch[bytes]:
        """Runs one SSCAN round-trip over the members of a set."""
        value = self._data.get(key, set())
        if not isinstance(value, set):
            raise FetchFailureError(WRONG_TYPE)
        next_token, window = self._window(sorted(value), token, options)
        return ScanBatch(next_token, [_to_bytes(m) for m in window if options.matches(m)])

    def _window(
        self, elements: list[Any], token: Any, options: ScanOptions
    ) -> tuple[int, list[Any]]:
        offset = self._parse_token(token)
        count = options.count or self.DEFAULT_COUNT
        end = offset + count

        logger.debug(
            "Scanning memory store",
            extra={"token_hash": redact_token(token), "count": count, "size": len(elements)},
        )
        return (end if end < len(elements) else 0), elements[offset:end]

    @staticmethod
    def _parse_token(token: Any) -> int:
        if isinstance(token, bytes):
            token = token.decode("ascii", errors="replace")
        if isinstance(token, str) and token.isdigit():
            token = int(token)
        if isinstance(token, bool) or not isinstance(token, int) or token < 0:
            raise InvalidCursorError("invalid cursor", token=token)
        return token

    # --- CURSORS ---

    def scan_cursor(
        self, options: ScanOptions | None = None, start: Any = START
    ) -> ScanCursor[bytes]:
        return ScanCursor(self.scan, options, start)

    def scan_keys(
        self, options: ScanOptions | None = None, start: Any = START
    ) -> ConvertingCursor[bytes, str]:
        """Like scan_cursor(), with keys decoded to str."""
        return as_text(self.scan_cursor(options, start))

    def hscan_cursor(
        self, key: str, options: ScanOptions | None = None, start: Any = START
    ) -> KeyBoundCursor[tuple[bytes, bytes]]:
        return KeyBoundCursor(key, self.hscan, options, start)

    def sscan_cursor(
        self, key: str, options: ScanOptions | None = None, start: Any = START
    ) -> KeyBoundCursor[bytes]:
        return KeyBoundCursor(key, self.sscan, options, start)
