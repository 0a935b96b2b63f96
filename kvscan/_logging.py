import hashlib
import logging
from typing import Any

# Create the library logger
logger = logging.getLogger("kvscan")

# Add NullHandler to prevent "No handlers could be found" warnings
# if the application doesn't configure logging.
logger.addHandler(logging.NullHandler())


def redact_token(token: Any) -> str:
    """
    Redacts a continuation token for logging.
    Tokens can embed key values (e.g. an encoded DynamoDB LastEvaluatedKey),
    so they are hashed to allow correlation without revealing PII.
    """
    if token is None:
        return "<none>"
    try:
        raw = token if isinstance(token, bytes) else str(token).encode("utf-8")
        return hashlib.sha256(raw).hexdigest()[:8]
    except Exception:
        return "<redaction_failed>"
