"""Behavioural tests for provisioning sandbox projects from webhooks."""

from __future__ import annotations

import dataclasses as dc
import json
import typing as typ

import falcon.testing
import pytest
from pytest_bdd import given, parsers, scenario, then, when

from sandbox_provisioner.api import create_app
from sandbox_provisioner.api.factory import build_app_dependencies
from sandbox_provisioner.webhooks import (
    MEMBER_JOINED_EVENT,
    SIGNATURE_HEADER,
    compute_signature,
)
from tests.helpers.constants import WORKSPACE_ID
from tests.helpers.graphql_stub import data, graphql_error

if typ.TYPE_CHECKING:
    from sandbox_provisioner.config import ProvisionerConfig
    from tests.helpers.graphql_stub import GraphQLStub

_SECRET = "feature-secret"


class WebhookContext(typ.TypedDict, total=False):
    """Shared state used by webhook provisioning steps."""

    config: ProvisionerConfig
    result: falcon.testing.Result


@scenario(
    "../webhook_provisioning.feature",
    "A new workspace member receives a sandbox project",
)
def test_new_member_receives_sandbox() -> None:
    """Behavioural test: first delivery creates and grants the project."""


@scenario(
    "../webhook_provisioning.feature",
    "A redelivered event reuses the existing project",
)
def test_redelivery_reuses_project() -> None:
    """Behavioural test: duplicate delivery converges on the same project."""


@scenario("../webhook_provisioning.feature", "Unrelated events are ignored")
def test_unrelated_events_ignored() -> None:
    """Behavioural test: non-join events make no remote calls."""


@scenario("../webhook_provisioning.feature", "Tampered deliveries are rejected")
def test_tampered_deliveries_rejected() -> None:
    """Behavioural test: bad signatures are refused."""


@pytest.fixture
def webhook_context(config: ProvisionerConfig) -> WebhookContext:
    """Start each scenario unsigned and without startup reconciliation."""
    return {"config": dc.replace(config, public_domain=None)}


def _event_body(event_type: str, email: str) -> bytes:
    return json.dumps(
        {
            "type": event_type,
            "details": {"userId": "user-1", "email": email},
            "resource": {"workspace": {"id": WORKSPACE_ID}},
        }
    ).encode()


def _deliver(
    context: WebhookContext,
    stub: GraphQLStub,
    body: bytes,
    headers: dict[str, str] | None = None,
) -> None:
    deps = build_app_dependencies(context["config"], http_client=stub.http_client())
    client = falcon.testing.TestClient(create_app(deps))
    context["result"] = client.simulate_post("/webhook", body=body, headers=headers)


@given("webhook signing is enabled")
def given_signing_enabled(webhook_context: WebhookContext) -> None:
    """Configure a shared webhook secret."""
    webhook_context["config"] = dc.replace(
        webhook_context["config"], webhook_secret=_SECRET
    )


@given("the remote platform accepts project creation")
def given_platform_accepts(graphql_stub: GraphQLStub) -> None:
    """Script successful project creation and membership grant."""
    graphql_stub.on(
        "projectCreate", data({"projectCreate": {"id": "proj-1", "name": "john"}})
    )
    graphql_stub.on(
        "projectMemberAdd",
        data({"projectMemberAdd": {"id": "m-1", "role": "ADMIN"}}),
    )


@given(parsers.parse('the remote platform already has project "{name}"'))
def given_existing_project(graphql_stub: GraphQLStub, name: str) -> None:
    """Script conflicts for an actor provisioned earlier."""
    graphql_stub.on("projectCreate", graphql_error(f"Project {name} already exists"))
    graphql_stub.on(
        "projects",
        data(
            {
                "workspace": {
                    "projects": {"edges": [{"node": {"id": "proj-1", "name": name}}]}
                }
            }
        ),
    )
    graphql_stub.on(
        "projectMemberAdd", graphql_error("User is already a member of this project")
    )


@when(parsers.parse('a member joined event for "{email}" is delivered'))
def when_member_joined(
    webhook_context: WebhookContext, graphql_stub: GraphQLStub, email: str
) -> None:
    """Deliver a correctly signed (or unsigned) join event."""
    body = _event_body(MEMBER_JOINED_EVENT, email)
    secret = webhook_context["config"].webhook_secret
    headers = {SIGNATURE_HEADER: compute_signature(body, secret)} if secret else None
    _deliver(webhook_context, graphql_stub, body, headers)


@when(
    parsers.parse(
        'a member joined event for "{email}" is delivered with a bad signature'
    )
)
def when_member_joined_bad_signature(
    webhook_context: WebhookContext, graphql_stub: GraphQLStub, email: str
) -> None:
    """Deliver a join event signed with the wrong secret."""
    body = _event_body(MEMBER_JOINED_EVENT, email)
    headers = {SIGNATURE_HEADER: compute_signature(body, "wrong-secret")}
    _deliver(webhook_context, graphql_stub, body, headers)


@when(parsers.parse('a "{event_type}" event is delivered'))
def when_other_event(
    webhook_context: WebhookContext, graphql_stub: GraphQLStub, event_type: str
) -> None:
    """Deliver an event the provisioner does not act on."""
    _deliver(webhook_context, graphql_stub, _event_body(event_type, "x@example.com"))


@then(parsers.parse("the response status is {status:d}"))
def then_status(webhook_context: WebhookContext, status: int) -> None:
    """Assert the HTTP status code."""
    assert webhook_context["result"].status_code == status


@then(parsers.parse('the response reports project "{name}" with role "{role}"'))
def then_project_reported(webhook_context: WebhookContext, name: str, role: str) -> None:
    """Assert the provisioning outcome body."""
    body = webhook_context["result"].json
    assert body["status"] == "provisioned"
    assert body["projectName"] == name
    assert body["projectRole"] == role
    assert body["workspaceRole"] == "VIEWER"


@then(parsers.parse('the response status field is "{value}"'))
def then_status_field(webhook_context: WebhookContext, value: str) -> None:
    """Assert the ``status`` field of the response body."""
    assert webhook_context["result"].json["status"] == value


@then(parsers.parse('the remote operations were "{operations}"'))
def then_operations(graphql_stub: GraphQLStub, operations: str) -> None:
    """Assert the remote operations in call order."""
    assert graphql_stub.operations == operations.split(",")


@then("no remote operations were made")
def then_no_operations(graphql_stub: GraphQLStub) -> None:
    """Assert the remote API was never called."""
    assert graphql_stub.calls == []
