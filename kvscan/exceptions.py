from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from botocore.exceptions import ClientError


class KVScanError(Exception):
    """Base exception for all kvscan errors."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error


# --- Cursor contract violations ---


class ExhaustedCursorError(KVScanError):
    """Raised when next() is called on a cursor that has no more items."""

    def __init__(self, message: str = "Cursor is exhausted", position: int | None = None) -> None:
        super().__init__(message)
        self.position = position


class CursorClosedError(KVScanError):
    """Raised when an operation is attempted on a closed cursor."""

    def __init__(self, message: str = "Cursor is closed") -> None:
        super().__init__(message)


class InvalidCursorStateError(KVScanError):
    """Raised when an operation is not allowed in the cursor's current state."""

    def __init__(self, state: str, message: str | None = None) -> None:
        super().__init__(message or f"Operation not allowed in cursor state '{state}'")
        self.state = state


# --- Store failures ---


class FetchFailureError(KVScanError):
    """Raised when the store fails to return a scan batch."""


class TableNotFoundError(FetchFailureError):
    """Raised when the scanned table does not exist."""

    def __init__(self, table_name: str, original_error: Exception | None = None) -> None:
        super().__init__(f"Table '{table_name}' not found", original_error)
        self.table_name = table_name


class ThroughputExceededError(FetchFailureError):
    """Raised when the store throttles scan requests."""

    def __init__(
        self, message: str = "Request rate exceeded", original_error: Exception | None = None
    ) -> None:
        super().__init__(message, original_error)


class RequestTimeoutError(FetchFailureError):
    """Raised when a scan request to the store times out."""

    def __init__(
        self, message: str = "Request timed out", original_error: Exception | None = None
    ) -> None:
        super().__init__(message, original_error)


class InvalidCursorError(FetchFailureError):
    """Raised when the store rejects a continuation token as malformed or unknown."""

    def __init__(
        self,
        message: str = "Invalid cursor",
        token: Any | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.token = token


# --- Conversion / serialization ---


class ConversionFailureError(KVScanError):
    """Raised by a converting cursor when the conversion of a single item fails."""

    def __init__(self, item: Any, original_error: Exception | None = None) -> None:
        msg = f"Failed to convert item {item!r}"
        if original_error is not None:
            msg += f": {original_error!s}"
        super().__init__(msg, original_error)
        self.item = item


class DynamoSerializationError(KVScanError):
    """Raised when serialization to or from DynamoDB format fails."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, original_error)


@contextmanager
def handle_store_errors(table_name: str | None = None) -> Generator[None, None, None]:
    """
    Context manager that catches botocore.exceptions.ClientError
    and raises the appropriate FetchFailureError subclass.

    Args:
        table_name: Optional table name for better error messages

    Usage:
        with handle_store_errors(table_name="users"):
            client.scan(...)
    """
    try:
        yield
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        error_message = e.response.get("Error", {}).get("Message", str(e))

        if error_code == "ResourceNotFoundException":
            raise TableNotFoundError(table_name=table_name or "unknown", original_error=e) from e

        if error_code in (
            "ProvisionedThroughputExceededException",
            "ThrottlingException",
            "RequestLimitExceeded",
        ):
            raise ThroughputExceededError(message=error_message, original_error=e) from e

        # DynamoDB reports a bad ExclusiveStartKey as a validation failure
        if error_code in ("ValidationException", "SerializationException"):
            raise InvalidCursorError(message=error_message, original_error=e) from e

        if error_code in ("RequestTimeout", "RequestTimeoutException"):
            raise RequestTimeoutError(message=error_message, original_error=e) from e

        raise FetchFailureError(
            message=f"Store error ({error_code}): {error_message}", original_error=e
        ) from e
