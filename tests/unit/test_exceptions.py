"""
Unit tests for custom exception handling in kvscan.

These tests verify that the exception hierarchy works correctly and that
the handle_store_errors context manager properly translates botocore
ClientError exceptions into FetchFailureError subclasses.
"""

import pytest
from botocore.exceptions import ClientError

from kvscan.exceptions import (
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
    handle_store_errors,
)


def _client_error(code: str, message: str = "error", operation: str = "Scan") -> ClientError:
    return ClientError(
        error_response={"Error": {"Code": code, "Message": message}},
        operation_name=operation,
    )


class TestExceptionHierarchy:
    """Test the exception class hierarchy and instantiation."""

    def test_kvscan_error_base_class(self):
        """Test that KVScanError is the base exception class."""
        error = KVScanError("Test message")
        assert isinstance(error, Exception)
        assert error.message == "Test message"
        assert error.original_error is None

    def test_kvscan_error_with_original_error(self):
        """Test KVScanError with original error preservation."""
        original = ValueError("Original error")
        error = KVScanError("Wrapped message", original_error=original)
        assert error.message == "Wrapped message"
        assert error.original_error is original

    def test_exhausted_cursor_error(self):
        error = ExhaustedCursorError(position=3)
        assert isinstance(error, KVScanError)
        assert error.position == 3
        assert "exhausted" in str(error)

    def test_cursor_closed_error(self):
        error = CursorClosedError()
        assert isinstance(error, KVScanError)
        assert "closed" in str(error)

    def test_invalid_cursor_state_error(self):
        error = InvalidCursorStateError("finished")
        assert error.state == "finished"
        assert "finished" in str(error)

    def test_store_errors_are_fetch_failures(self):
        """Every store-side error is catchable as FetchFailureError."""
        assert isinstance(TableNotFoundError("users"), FetchFailureError)
        assert isinstance(ThroughputExceededError(), FetchFailureError)
        assert isinstance(RequestTimeoutError(), FetchFailureError)
        assert isinstance(InvalidCursorError(token="abc"), FetchFailureError)

    def test_contract_errors_are_not_fetch_failures(self):
        assert not isinstance(ExhaustedCursorError(), FetchFailureError)
        assert not isinstance(CursorClosedError(), FetchFailureError)

    def test_table_not_found_error(self):
        error = TableNotFoundError("test_table")
        assert error.table_name == "test_table"
        assert "test_table" in str(error)

    def test_invalid_cursor_error_keeps_token(self):
        error = InvalidCursorError("bad cursor", token="xyz")
        assert error.token == "xyz"

    def test_conversion_failure_error(self):
        original = ValueError("invalid literal")
        error = ConversionFailureError(b"raw", original_error=original)
        assert isinstance(error, KVScanError)
        assert error.item == b"raw"
        assert error.original_error is original
        assert "invalid literal" in str(error)

    def test_dynamo_serialization_error(self):
        """Test DynamoSerializationError instantiation."""
        error = DynamoSerializationError("Serialization failed")
        assert isinstance(error, KVScanError)
        assert "Serialization failed" in str(error)


class TestHandleStoreErrors:
    """Test the handle_store_errors context manager."""

    def test_successful_operation(self):
        """Test that successful operations pass through normally."""
        with handle_store_errors():
            result = 42
        assert result == 42

    def test_resource_not_found_exception(self):
        """Test ResourceNotFoundException mapping to TableNotFoundError."""
        mock_error = _client_error("ResourceNotFoundException", "Requested resource not found")

        with pytest.raises(TableNotFoundError) as exc_info:
            with handle_store_errors(table_name="users"):
                raise mock_error

        error = exc_info.value
        assert error.table_name == "users"
        assert error.original_error is mock_error
        assert error.__cause__ is mock_error

    def test_error_without_table_name(self):
        with pytest.raises(TableNotFoundError) as exc_info:
            with handle_store_errors():
                raise _client_error("ResourceNotFoundException")

        assert exc_info.value.table_name == "unknown"

    @pytest.mark.parametrize(
        "code",
        ["ProvisionedThroughputExceededException", "ThrottlingException", "RequestLimitExceeded"],
    )
    def test_throttling_exceptions(self, code):
        mock_error = _client_error(code, "Rate limit exceeded")

        with pytest.raises(ThroughputExceededError) as exc_info:
            with handle_store_errors():
                raise mock_error

        assert exc_info.value.original_error is mock_error
        assert "Rate limit exceeded" in str(exc_info.value)

    @pytest.mark.parametrize("code", ["ValidationException", "SerializationException"])
    def test_validation_exceptions_mean_invalid_cursor(self, code):
        mock_error = _client_error(code, "The provided starting key is invalid")

        with pytest.raises(InvalidCursorError) as exc_info:
            with handle_store_errors():
                raise mock_error

        assert exc_info.value.original_error is mock_error

    @pytest.mark.parametrize("code", ["RequestTimeout", "RequestTimeoutException"])
    def test_timeout_exceptions(self, code):
        with pytest.raises(RequestTimeoutError):
            with handle_store_errors():
                raise _client_error(code, "timed out")

    def test_unknown_error_code(self):
        """Test unknown error codes map to generic FetchFailureError."""
        mock_error = _client_error("UnknownErrorCode", "Something unexpected happened")

        with pytest.raises(FetchFailureError) as exc_info:
            with handle_store_errors():
                raise mock_error

        error = exc_info.value
        assert type(error) is FetchFailureError
        assert "UnknownErrorCode" in str(error)
        assert "Something unexpected happened" in str(error)
        assert error.original_error is mock_error

    def test_non_client_errors_pass_through(self):
        with pytest.raises(KeyError):
            with handle_store_errors():
                raise KeyError("not a store error")
