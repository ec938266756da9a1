"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import secrets
import typing as typ

import pytest
import pytest_asyncio

from sandbox_provisioner.config import ProvisionerConfig
from sandbox_provisioner.remote import RemoteAPIConfig, RemoteGraphQLClient
from tests.helpers.constants import PUBLIC_DOMAIN, TEST_ENDPOINT, WORKSPACE_ID
from tests.helpers.fakes import FakeLogger, RecordingSleep
from tests.helpers.graphql_stub import GraphQLStub

if typ.TYPE_CHECKING:
    import collections.abc as cabc


@pytest.fixture
def api_token() -> str:
    """Return a throwaway API token."""
    return secrets.token_hex(8)


@pytest.fixture
def config(api_token: str) -> ProvisionerConfig:
    """Return configuration with a public domain and no secret."""
    return ProvisionerConfig(
        api_token=api_token,
        workspace_id=WORKSPACE_ID,
        public_domain=PUBLIC_DOMAIN,
        api_endpoint=TEST_ENDPOINT,
    )


@pytest.fixture
def fake_logger() -> FakeLogger:
    """Return a logger collecting calls."""
    return FakeLogger()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    """Return a sleep replacement that records delays without waiting."""
    return RecordingSleep()


@pytest.fixture
def graphql_stub() -> GraphQLStub:
    """Return an empty scripted GraphQL stub."""
    return GraphQLStub()


@pytest_asyncio.fixture
async def remote_client(
    graphql_stub: GraphQLStub,
    api_token: str,
    fake_logger: FakeLogger,
    recording_sleep: RecordingSleep,
) -> cabc.AsyncIterator[RemoteGraphQLClient]:
    """Yield a remote client wired to the GraphQL stub."""
    http_client = graphql_stub.http_client()
    client = RemoteGraphQLClient(
        RemoteAPIConfig(token=api_token, endpoint=TEST_ENDPOINT),
        http_client=http_client,
        sleep=recording_sleep,
        logger=fake_logger,
    )
    try:
        yield client
    finally:
        await http_client.aclose()
