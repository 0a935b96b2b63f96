"""
Typed views over raw scan cursors.

Stores hand back raw representations (bytes keys, DynamoDB attribute dicts).
ConvertingCursor maps each item to a caller-facing type at the moment it is
pulled, so a bad item fails on its own and never earlier.
"""

from collections.abc import Callable, Iterator
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from .cursor import CursorState, ScanCursor
from .exceptions import ConversionFailureError

S = TypeVar("S")
T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


class ConvertingCursor(Generic[S, T]):
    """
    Wraps a ScanCursor and applies a converter to every item it delivers.

    A converter failure raises ConversionFailureError for that item only.
    The item counts as consumed; the caller may keep pulling the rest.
    """

    def __init__(self, cursor: ScanCursor[S], converter: Callable[[S], T]) -> None:
        self.cursor = cursor
        self.converter = converter

    @property
    def state(self) -> CursorState:
        return self.cursor.state

    @property
    def position(self) -> int:
        return self.cursor.position

    @property
    def cursor_id(self) -> Any:
        return self.cursor.cursor_id

    @property
    def is_closed(self) -> bool:
        return self.cursor.is_closed

    def open(self) -> "ConvertingCursor[S, T]":
        self.cursor.open()
        return self

    def has_next(self) -> bool:
        return self.cursor.has_next()

    def next(self) -> T:
        raw = self.cursor.next()
        try:
            return self.converter(raw)
        except Exception as e:
            raise ConversionFailureError(item=raw, original_error=e) from e

    def close(self) -> None:
        self.cursor.close()

    def __iter__(self) -> Iterator[T]:
        return self

    def __next__(self) -> T:
        if not self.has_next():
            raise StopIteration
        return self.next()

    def __enter__(self) -> "ConvertingCursor[S, T]":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.cursor!r})"


def as_text(cursor: ScanCursor[bytes], encoding: str = "utf-8") -> ConvertingCursor[bytes, str]:
    """Decodes every bytes item of the cursor to str."""
    return ConvertingCursor(cursor, lambda raw: raw.decode(encoding))


def as_models(
    cursor: ScanCursor[dict[str, Any]], model_cls: type[M]
) -> ConvertingCursor[dict[str, Any], M]:
    """
    Validates every dict item of the cursor into a Pydantic model.

    Usage:
        for user in as_models(store.cursor(), User):
            ...
    """
    return ConvertingCursor(cursor, model_cls.model_validate)
