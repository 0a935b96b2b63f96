"""
Scan configuration for kvscan.

ScanOptions is the immutable value object every cursor and store adapter
consumes. Use scan_options() to build one fluently:

    options = scan_options().count(100).match("user:*").build()
"""

from fnmatch import fnmatchcase
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

# Strict so that bools and numeric strings are not coerced to a count
PositiveCount = Annotated[int, Field(strict=True, gt=0)]


class ScanOptions(BaseModel):
    """
    Options applied to every round-trip of a scan.

    Attributes:
        count: Advisory number of items the store should examine per round-trip.
               None leaves the decision to the store.
        match: Glob-style pattern the store filters items with. None disables filtering.
    """

    model_config = ConfigDict(frozen=True)

    count: PositiveCount | None = None
    match: str | None = None

    def to_args(self) -> list[Any]:
        """
        Renders the options as store command arguments.
        E.g.: ScanOptions(count=10, match="a*") -> ["MATCH", "a*", "COUNT", 10]
        """
        args: list[Any] = []
        if self.match is not None:
            args.extend(["MATCH", self.match])
        if self.count is not None:
            args.extend(["COUNT", self.count])
        return args

    def matches(self, value: Any) -> bool:
        """Returns True if value passes the match pattern (always True without one)."""
        if self.match is None:
            return True
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="surrogateescape")
        return fnmatchcase(str(value), self.match)


# Shared instance for scans without count hint or pattern
NONE = ScanOptions()


class ScanOptionsBuilder:
    """
    Implements the Builder Pattern for ScanOptions.
    Allows chaining methods (e.g., .count().match()) before building.
    """

    def __init__(self) -> None:
        self.count_val: int | None = None
        self.pattern: str | None = None

    def count(self, count: int) -> "ScanOptionsBuilder":
        """Sets the advisory number of items per round-trip."""
        # Same rule as the model field, checked eagerly
        try:
            ScanOptions(count=count)
        except ValidationError as e:
            raise ValueError(f"Scan count must be a positive integer, got {count!r}") from e
        self.count_val = count
        return self

    def match(self, pattern: str) -> "ScanOptionsBuilder":
        """Sets the glob-style pattern items must match."""
        self.pattern = pattern
        return self

    def build(self) -> ScanOptions:
        if self.count_val is None and self.pattern is None:
            return NONE
        return ScanOptions(count=self.count_val, match=self.pattern)


def scan_options() -> ScanOptionsBuilder:
    """Returns a new ScanOptionsBuilder."""
    return ScanOptionsBuilder()
