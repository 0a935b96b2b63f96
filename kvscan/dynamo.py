"""
DynamoDB scan adapter.

DynamoScanStore exposes a DynamoDB table through the fetch contract
scan(token, options) -> ScanBatch, so a ScanCursor can walk the table page by
page. LastEvaluatedKey maps are turned into opaque string tokens and back.
"""

from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, ClassVar, TypeVar

import boto3
from pydantic import BaseModel

from ._logging import logger, redact_token
from .converting import ConvertingCursor, as_models
from .cursor import ScanCursor
from .exceptions import handle_store_errors
from .options import NONE, ScanOptions
from .pagination import START, ScanBatch, is_terminal_token
from .serializer import DynamoSerializer

M = TypeVar("M", bound=BaseModel)

_GLOB_CHARS = "*?[]\\"


def glob_prefix(pattern: str) -> str | None:
    """
    Returns the literal prefix of a 'prefix*' glob, or None for any other pattern.
    E.g.: "user:*" -> "user:", "*" -> "", "user:?" -> None
    """
    if not pattern.endswith("*"):
        return None
    prefix = pattern[:-1]
    if any(c in prefix for c in _GLOB_CHARS):
        return None
    return prefix


class DynamoScanStore:
    """
    Scans a DynamoDB table (or one of its indexes) one page at a time.

    The match pattern is tested against the `key_name` attribute. A plain
    'prefix*' pattern is sent to DynamoDB as a begins_with filter; other globs
    are applied after the page is read. DynamoDB applies filters after `Limit`
    items are read, so pages may come back empty while the scan goes on.
    """

    _client_context: ClassVar[ContextVar[Any | None]] = ContextVar(
        "kvscan_dynamo_client", default=None
    )
    _default_client: ClassVar[Any | None] = None

    def __init__(
        self,
        table_name: str,
        key_name: str = "pk",
        index_name: str | None = None,
        region: str | None = None,
        client: Any | None = None,
    ) -> None:
        self.table_name = table_name
        self.key_name = key_name
        self.index_name = index_name
        self.region = region
        self.serializer = DynamoSerializer()
        self._client = client

    # --- CLIENT RESOLUTION ---

    def _get_client(self) -> Any:
        """
        Returns the Boto3 DynamoDB client to use.

        Resolution order: client scoped with using_client(), client passed to the
        constructor, client installed with set_client(), then a lazily created one.
        """
        ctx_client = self._client_context.get()
        if ctx_client is not None:
            return ctx_client
        if self._client is not None:
            return self._client
        if DynamoScanStore._default_client is not None:
            return DynamoScanStore._default_client

        self._client = boto3.client("dynamodb", region_name=self.region)
        return self._client

    @classmethod
    @contextmanager
    def using_client(cls, client: Any) -> Generator[None, None, None]:
        """
        Context manager to scope a client to a block of code.
        Thread-safe and Async-safe using contextvars.

        Usage:
            with DynamoScanStore.using_client(my_client):
                list(store.cursor())
        """
        token = cls._client_context.set(client)
        try:
            yield
        finally:
            cls._client_context.reset(token)

    @classmethod
    def set_client(cls, client: Any | None) -> None:
        """Installs a default client for every store without its own client."""
        DynamoScanStore._default_client = client

    # --- FETCH ---

    def scan(self, token: Any, options: ScanOptions = NONE) -> ScanBatch[dict[str, Any]]:
        """
        Executes a single Scan request.

        Args:
            token: START for the first page, otherwise the token of the previous batch.
            options: count maps to Limit, match filters on the key attribute.

        Returns:
            ScanBatch with deserialized items and the token of the next page
            (0 once DynamoDB returns no LastEvaluatedKey).
        """
        kwargs: dict[str, Any] = {"TableName": self.table_name}
        if self.index_name:
            kwargs["IndexName"] = self.index_name
        if options.count:
            kwargs["Limit"] = options.count
        if not is_terminal_token(token):
            kwargs["ExclusiveStartKey"] = self.serializer.decode_token(token)

        client_side_match = False
        if options.match is not None:
            prefix = glob_prefix(options.match)
            if prefix is None:
                client_side_match = True
            elif prefix:
                kwargs["FilterExpression"] = "begins_with(#k, :prefix)"
                kwargs["ExpressionAttributeNames"] = {"#k": self.key_name}
                kwargs["ExpressionAttributeValues"] = {
                    ":prefix": self.serializer.to_dynamo_value(prefix)
                }

        logger.debug(
            "Executing scan page",
            extra={
                "table": self.table_name,
                "index": self.index_name,
                "limit": options.count,
                "has_filter": "FilterExpression" in kwargs or client_side_match,
                "token_hash": redact_token(token),
            },
        )

        with handle_store_errors(table_name=self.table_name):
            response = self._get_client().scan(**kwargs)

        items = [self.serializer.from_dynamo(item) for item in response.get("Items", [])]
        if client_side_match:
            items = [
                item
                for item in items
                if self.key_name in item and options.matches(item[self.key_name])
            ]

        raw_key = response.get("LastEvaluatedKey")
        next_token = self.serializer.encode_token(raw_key) if raw_key else 0
        return ScanBatch(next_token, items)

    # --- CURSORS ---

    def cursor(
        self, options: ScanOptions | None = None, start: Any = START
    ) -> ScanCursor[dict[str, Any]]:
        """
        Returns a lazy cursor over the table. Nothing is sent to DynamoDB
        until iteration starts.
        """
        return ScanCursor(self.scan, options, start)

    def model_cursor(
        self, model_cls: type[M], options: ScanOptions | None = None, start: Any = START
    ) -> ConvertingCursor[dict[str, Any], M]:
        """Like cursor(), with every item validated into model_cls."""
        return as_models(self.cursor(options, start), model_cls)
