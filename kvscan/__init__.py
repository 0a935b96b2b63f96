from .converting import ConvertingCursor, as_models, as_text
from .cursor import CursorState, KeyBoundCursor, ScanCursor
from .dynamo import DynamoScanStore
from .exceptions import (
    ConversionFailureError,
    CursorClosedError,
    DynamoSerializationError,
    ExhaustedCursorError,
    FetchFailureError,
    InvalidCursorError,
    InvalidCursorStateError,
    KVScanError,
    RequestTimeoutError,
    TableNotFoundError,
    ThroughputExceededError,
)
from .memory import MemoryStore
from .options import NONE, ScanOptions, ScanOptionsBuilder, scan_options
from .pagination import START, ScanBatch, is_terminal_token

__all__ = [
    # Core
    "ScanBatch",
    "ScanCursor",
    "KeyBoundCursor",
    "CursorState",
    "ConvertingCursor",
    "as_text",
    "as_models",
    "START",
    "is_terminal_token",
    # Options
    "ScanOptions",
    "ScanOptionsBuilder",
    "scan_options",
    "NONE",
    # Stores
    "MemoryStore",
    "DynamoScanStore",
    # Exceptions
    "KVScanError",
    "ExhaustedCursorError",
    "CursorClosedError",
    "InvalidCursorStateError",
    "FetchFailureError",
    "TableNotFoundError",
    "ThroughputExceededError",
    "RequestTimeoutError",
    "InvalidCursorError",
    "ConversionFailureError",
    "DynamoSerializationError",
]
