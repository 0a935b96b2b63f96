"""
Shared pytest fixtures and configuration for kvscan tests.

This module provides common fixtures used across unit and integration tests,
including scripted fetch functions, mocked boto3 clients and LocalStack clients.
"""

import os
from collections.abc import Callable, Iterable, Iterator
from typing import Any
from unittest.mock import MagicMock

import boto3
import pytest

from kvscan import DynamoScanStore, MemoryStore, ScanBatch, ScanOptions


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests with mocked dependencies")
    config.addinivalue_line("markers", "integration: Integration tests against LocalStack")
    config.addinivalue_line("markers", "slow: Slow tests that may take longer")


class ScriptedFetch:
    """
    Fetch function replaying a fixed list of responses.

    Each response is either a ScanBatch or an exception instance to raise.
    Every call is recorded as a (token, options) tuple.
    """

    def __init__(self, responses: Iterable[ScanBatch | Exception]) -> None:
        self._responses: Iterator[ScanBatch | Exception] = iter(responses)
        self.calls: list[tuple[Any, ScanOptions]] = []

    def __call__(self, token: Any, options: ScanOptions) -> ScanBatch:
        self.calls.append((token, options))
        response = next(self._responses)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def tokens(self) -> list[Any]:
        return [token for token, _ in self.calls]


@pytest.fixture
def scripted_fetch() -> Callable[..., ScriptedFetch]:
    """
    Factory for ScriptedFetch instances.

    Usage:
        fetch = scripted_fetch(ScanBatch(5, ["a"]), ScanBatch(0, ["b"]))
    """

    def factory(*responses: ScanBatch | Exception) -> ScriptedFetch:
        return ScriptedFetch(responses)

    return factory


@pytest.fixture
def memory_store() -> MemoryStore:
    """A MemoryStore seeded with 25 user keys, 5 order keys, a hash and a set."""
    store = MemoryStore()
    for i in range(25):
        store.set(f"user:{i:02d}", f"name-{i}")
    for i in range(5):
        store.set(f"order:{i}", str(i * 10))
    store.hset("profile", "name", "alice")
    store.hset("profile", "email", "alice@example.com")
    store.hset("profile", "city", "Rome")
    store.sadd("tags", "python", "redis", "dynamo", "pytest")
    return store


@pytest.fixture
def mock_client():
    """
    Creates a fully mocked boto3 DynamoDB client.

    This fixture provides a mock client for unit tests that don't need
    real DynamoDB interactions.
    """
    client = MagicMock()
    client.scan.return_value = {"Items": []}
    return client


@pytest.fixture
def dynamo_store(mock_client) -> DynamoScanStore:
    """A DynamoScanStore bound to the mocked client."""
    return DynamoScanStore("test_users", key_name="email", client=mock_client)


@pytest.fixture(autouse=True)
def reset_default_client():
    """Makes sure set_client() calls never leak between tests."""
    yield
    DynamoScanStore.set_client(None)


@pytest.fixture(scope="session")
def localstack_endpoint() -> str:
    """Get LocalStack endpoint URL from environment or default."""
    return os.getenv("LOCALSTACK_ENDPOINT", "http://localhost:4566")


@pytest.fixture(scope="session")
def localstack_client(localstack_endpoint: str):
    """
    Creates a boto3 client connected to LocalStack.

    This fixture is session-scoped to avoid creating multiple clients.
    """
    return boto3.client(
        "dynamodb",
        endpoint_url=localstack_endpoint,
        region_name="eu-south-1",
        aws_access_key_id="test",
        aws_secret_access_key="test",
    )


@pytest.fixture(scope="session")
def localstack_helper(localstack_endpoint: str):
    """Session-wide LocalStack helper; skips integration tests when LocalStack is down."""
    from tests.helpers.localstack import LocalStackHelper

    helper = LocalStackHelper(endpoint_url=localstack_endpoint)
    if not helper.is_available():
        pytest.skip("LocalStack is not running")
    return helper


@pytest.fixture
def users_table(localstack_helper):
    """
    Creates a fresh users table keyed by 'email' and deletes it afterwards.
    """
    table_name = "kvscan_test_users"
    localstack_helper.create_table(table_name, pk_name="email")
    yield table_name
    localstack_helper.delete_table(table_name)
