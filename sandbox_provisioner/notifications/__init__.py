"""Notification subscription reconciliation."""

from __future__ import annotations

from .reconciler import (
    NotificationReconciler,
    SubscriptionClient,
    find_matching_subscriptions,
)

__all__ = [
    "NotificationReconciler",
    "SubscriptionClient",
    "find_matching_subscriptions",
]
