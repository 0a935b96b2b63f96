import base64
import binascii
import json
from decimal import Decimal
from typing import Any, cast

from boto3.dynamodb.types import Binary, TypeDeserializer, TypeSerializer

from .exceptions import DynamoSerializationError, InvalidCursorError


class DynamoSerializer:
    """
    Handles the conversion between Python values and DynamoDB Low-Level format,
    and between DynamoDB keys and opaque continuation tokens.

    Architectural Note:
    -------------------
    A scan cursor only understands scalar-ish tokens, while DynamoDB resumes a scan
    from a LastEvaluatedKey map. Tokens produced here are URL-safe strings wrapping
    that map, so they can be handed to a frontend and sent back unchanged.
    """

    def __init__(self) -> None:
        self._serializer = TypeSerializer()
        self._deserializer = TypeDeserializer()

    def to_dynamo_value(self, value: Any) -> dict[str, Any]:
        """
        Serializes a single scalar value to DynamoDB format.
        Used for the ExpressionAttributeValues of a prefix filter.
        E.g.: "user:" -> {'S': 'user:'}
        """
        try:
            result = cast(dict[str, Any], self._serializer.serialize(value))
        except TypeError as e:
            raise DynamoSerializationError(
                f"Failed to serialize value '{value}'. error={e!s}", original_error=e
            ) from e
        return result

    def from_dynamo(self, item: dict[str, Any]) -> dict[str, Any]:
        """Converts DynamoDB JSON format back to standard Python dict."""
        python_data = {k: self._deserializer.deserialize(v) for k, v in item.items()}
        result = self._restore_to_python(python_data)
        assert isinstance(result, dict)
        return result

    def encode_token(self, last_evaluated_key: dict[str, Any]) -> str:
        """
        Converts a DynamoDB LastEvaluatedKey into an opaque continuation token.

        Input:  {"pk": {"S": "value"}, "sk": {"N": "123"}}
        Output: URL-safe base64 of '{"pk":{"S":"value"},"sk":{"N":"123"}}'
        """
        try:
            payload = {k: self._encode_attribute(v) for k, v in last_evaluated_key.items()}
            raw = json.dumps(payload, sort_keys=True, separators=(",", ":"))
        except (TypeError, ValueError) as e:
            raise DynamoSerializationError(
                f"Failed to encode continuation key. error={e!s}", original_error=e
            ) from e
        return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")

    def decode_token(self, token: str | bytes) -> dict[str, Any]:
        """
        Converts a token produced by encode_token() back to an ExclusiveStartKey.

        Raises:
            InvalidCursorError: If the token was not produced by encode_token().
        """
        try:
            raw = base64.urlsafe_b64decode(token)
            payload = json.loads(raw.decode("utf-8"))
            if not isinstance(payload, dict):
                raise ValueError("token payload is not a key map")
            return {k: self._decode_attribute(v) for k, v in payload.items()}
        except (binascii.Error, ValueError, TypeError, AttributeError) as e:
            raise InvalidCursorError(
                f"Malformed continuation token. error={e!s}", token=token, original_error=e
            ) from e

    def _encode_attribute(self, value: dict[str, Any]) -> dict[str, Any]:
        # Binary key attributes are not JSON-safe
        if "B" in value:
            return {"B64": base64.b64encode(bytes(value["B"])).decode("ascii")}
        return value

    def _decode_attribute(self, value: dict[str, Any]) -> dict[str, Any]:
        if "B64" in value:
            return {"B": base64.b64decode(value["B64"])}
        return value

    def _restore_to_python(self, value: Any) -> Any:
        """
        Recursively restores DynamoDB values to Python-friendly types.

        Converts:
        - Decimal -> int (if whole number) or float
        - Binary -> bytes
        """
        if isinstance(value, Decimal):
            if value % 1 == 0:
                return int(value)
            return float(value)
        if isinstance(value, Binary):
            return bytes(value.value)
        if isinstance(value, list):
            return [self._restore_to_python(v) for v in value]
        if isinstance(value, dict):
            return {k: self._restore_to_python(v) for k, v in value.items()}
        return value
