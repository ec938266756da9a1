"""Sandbox provisioner.

Reacts to ``WorkspaceMember.joined`` webhooks by idempotently creating a
sandbox project for the new member and granting them ADMIN on it, and keeps
the platform's notification subscription pointed at this service.
"""

from __future__ import annotations

__version__ = "0.1.0"
