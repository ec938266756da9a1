"""Unit tests for provisioning event logging and error categorisation."""

from __future__ import annotations

import pytest

from sandbox_provisioner.config import ConfigError
from sandbox_provisioner.provisioning import (
    ErrorCategory,
    ProvisioningError,
    ProvisioningEventLogger,
    ProvisioningEventType,
    ProvisioningResult,
    categorize_error,
)
from sandbox_provisioner.remote.errors import (
    RemoteAPIError,
    RemoteConfigError,
    RemoteResponseShapeError,
)
from tests.helpers.fakes import FakeLogger


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (RemoteAPIError.http_error(503), ErrorCategory.TRANSIENT),
        (RemoteAPIError.http_error(409, "already exists"), ErrorCategory.CONFLICT),
        (RemoteAPIError.http_error(401), ErrorCategory.CLIENT_ERROR),
        (RemoteResponseShapeError.missing("data"), ErrorCategory.SCHEMA_DRIFT),
        (RemoteConfigError.empty_token(), ErrorCategory.CONFIGURATION),
        (ConfigError.missing("WORKSPACE_ID"), ErrorCategory.CONFIGURATION),
        (ProvisioningError("x"), ErrorCategory.PROVISIONING),
        (ValueError("x"), ErrorCategory.UNKNOWN),
    ],
)
def test_categorize_error(error: BaseException, expected: ErrorCategory) -> None:
    """Each failure type maps to a stable category."""
    assert categorize_error(error) is expected


def test_run_completed_logs_key_values() -> None:
    """Completion events carry the result fields."""
    logger = FakeLogger()
    events = ProvisioningEventLogger(logger)

    events.log_run_completed(
        ProvisioningResult(
            actor_id="user-1",
            actor_email="john@example.com",
            project_id="proj-1",
            project_name="john",
        )
    )

    (message,) = logger.messages("INFO")
    assert message.startswith(f"[{ProvisioningEventType.RUN_COMPLETED}]")
    assert "project_id=proj-1" in message
    assert "project_role=ADMIN" in message


def test_run_failed_attaches_exception() -> None:
    """Failure events are logged at ERROR with exc_info."""
    logger = FakeLogger()
    error = RemoteAPIError.timeout()

    ProvisioningEventLogger(logger).log_run_failed("user-1", error)

    level, message, exc_info, _ = logger.calls[0]
    assert level == "ERROR"
    assert exc_info is error
    assert "error_category=transient" in message


@pytest.mark.parametrize(
    ("replaced_id", "event"),
    [
        (None, ProvisioningEventType.SUBSCRIPTION_CREATED),
        ("rule-0", ProvisioningEventType.SUBSCRIPTION_RECREATED),
    ],
)
def test_subscription_created_event_reflects_replacement(
    replaced_id: str | None, event: ProvisioningEventType
) -> None:
    """Recreations are distinguished from first-time creations."""
    logger = FakeLogger()

    ProvisioningEventLogger(logger).log_subscription_created(
        "rule-1", "https://a.test/webhook", replaced_id=replaced_id, signed=True
    )

    (message,) = logger.messages("INFO")
    assert message.startswith(f"[{event}]")
    assert "signed=True" in message
