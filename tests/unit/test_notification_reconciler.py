"""Unit tests for notification subscription reconciliation."""

from __future__ import annotations

import dataclasses as dc

import pytest

from sandbox_provisioner.config import ProvisionerConfig
from sandbox_provisioner.notifications import (
    NotificationReconciler,
    find_matching_subscriptions,
)
from sandbox_provisioner.provisioning import (
    ProvisioningEventLogger,
    ProvisioningEventType,
)
from sandbox_provisioner.remote.models import (
    NotificationChannel,
    SubscriptionDescriptor,
)
from sandbox_provisioner.webhooks import MEMBER_JOINED_EVENT
from tests.helpers.constants import CALLBACK_URL, WORKSPACE_ID
from tests.helpers.fakes import FakeLogger, InMemoryPlatform


def _subscription(
    sub_id: str, url: str, event_type: str = MEMBER_JOINED_EVENT
) -> SubscriptionDescriptor:
    return SubscriptionDescriptor(
        id=sub_id,
        event_types=frozenset({event_type}),
        channels=(NotificationChannel(type="webhook", webhook_url=url),),
    )


def _reconciler(
    platform: InMemoryPlatform, config: ProvisionerConfig, logger: FakeLogger
) -> NotificationReconciler:
    return NotificationReconciler(
        platform, config, event_logger=ProvisioningEventLogger(logger)
    )


def test_find_matching_subscriptions_requires_event_and_url() -> None:
    """Only a webhook to the callback URL for the join event matches."""
    other_url = _subscription("rule-1", "https://elsewhere.test/webhook")
    other_event = _subscription("rule-2", CALLBACK_URL, "Deployment.failed")
    wanted = _subscription("rule-3", CALLBACK_URL)

    found = find_matching_subscriptions(
        [other_url, other_event, wanted], MEMBER_JOINED_EVENT, CALLBACK_URL
    )

    assert found == (wanted,)


@pytest.mark.asyncio
async def test_creates_subscription_when_missing(
    config: ProvisionerConfig, fake_logger: FakeLogger
) -> None:
    """A missing subscription is created for the callback URL."""
    platform = InMemoryPlatform(WORKSPACE_ID)

    created = await _reconciler(platform, config, fake_logger).ensure_subscription()

    assert created is not None
    assert created.matches(MEMBER_JOINED_EVENT, CALLBACK_URL)
    assert platform.calls == ["list_subscriptions", "create_subscription"]


@pytest.mark.asyncio
async def test_reuses_matching_subscription_without_secret(
    config: ProvisionerConfig, fake_logger: FakeLogger
) -> None:
    """An existing match is kept as-is when no secret is configured."""
    platform = InMemoryPlatform(WORKSPACE_ID)
    existing = _subscription("rule-7", CALLBACK_URL)
    platform.subscriptions[existing.id] = existing

    result = await _reconciler(platform, config, fake_logger).ensure_subscription()

    assert result is existing
    assert platform.calls == ["list_subscriptions"]
    assert any(
        ProvisioningEventType.SUBSCRIPTION_REUSED in msg
        for msg in fake_logger.messages("INFO")
    )


@pytest.mark.asyncio
async def test_recreates_matching_subscription_with_secret(
    config: ProvisionerConfig, fake_logger: FakeLogger
) -> None:
    """With a secret the match is deleted, then recreated signed."""
    platform = InMemoryPlatform(WORKSPACE_ID)
    existing = _subscription("rule-7", CALLBACK_URL)
    platform.subscriptions[existing.id] = existing
    signed_config = dc.replace(config, webhook_secret="s3cret")

    created = await _reconciler(
        platform, signed_config, fake_logger
    ).ensure_subscription()

    assert created is not None
    assert created.id != "rule-7"
    assert list(platform.subscriptions) == [created.id]
    assert platform.calls == [
        "list_subscriptions",
        "delete_subscription",
        "create_subscription",
    ]
    assert any(
        ProvisioningEventType.SUBSCRIPTION_RECREATED in msg
        for msg in fake_logger.messages("INFO")
    )


@pytest.mark.asyncio
async def test_skips_without_public_domain(
    config: ProvisionerConfig, fake_logger: FakeLogger
) -> None:
    """No remote calls are made when no callback URL can be built."""
    platform = InMemoryPlatform(WORKSPACE_ID)
    no_domain = dc.replace(config, public_domain=None)

    result = await _reconciler(platform, no_domain, fake_logger).ensure_subscription()

    assert result is None
    assert platform.calls == []
    assert any(
        ProvisioningEventType.SUBSCRIPTION_SKIPPED in msg
        for msg in fake_logger.messages("WARNING")
    )


@pytest.mark.asyncio
async def test_unrelated_subscriptions_are_left_alone(
    config: ProvisionerConfig, fake_logger: FakeLogger
) -> None:
    """Subscriptions for other URLs are neither reused nor deleted."""
    platform = InMemoryPlatform(WORKSPACE_ID)
    unrelated = _subscription("rule-1", "https://elsewhere.test/webhook")
    platform.subscriptions[unrelated.id] = unrelated

    await _reconciler(platform, config, fake_logger).ensure_subscription()

    assert "rule-1" in platform.subscriptions
    assert len(platform.subscriptions) == 2


@pytest.mark.asyncio
async def test_duplicate_matches_are_pruned_without_secret(
    config: ProvisionerConfig, fake_logger: FakeLogger
) -> None:
    """Only the first matching subscription survives reconciliation."""
    platform = InMemoryPlatform(WORKSPACE_ID)
    for sub_id in ("rule-a", "rule-b"):
        platform.subscriptions[sub_id] = _subscription(sub_id, CALLBACK_URL)

    result = await _reconciler(platform, config, fake_logger).ensure_subscription()

    assert result is not None
    assert result.id == "rule-a"
    assert list(platform.subscriptions) == ["rule-a"]
    assert platform.calls == ["list_subscriptions", "delete_subscription"]


@pytest.mark.asyncio
async def test_duplicate_matches_are_all_replaced_with_secret(
    config: ProvisionerConfig, fake_logger: FakeLogger
) -> None:
    """Every unsigned match is deleted before the single signed create."""
    platform = InMemoryPlatform(WORKSPACE_ID)
    for sub_id in ("rule-a", "rule-b"):
        platform.subscriptions[sub_id] = _subscription(sub_id, CALLBACK_URL)
    signed_config = dc.replace(config, webhook_secret="s3cret")

    created = await _reconciler(
        platform, signed_config, fake_logger
    ).ensure_subscription()

    assert created is not None
    assert list(platform.subscriptions) == [created.id]
    assert platform.calls == [
        "list_subscriptions",
        "delete_subscription",
        "delete_subscription",
        "create_subscription",
    ]
