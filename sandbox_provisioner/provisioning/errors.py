"""Errors raised by the provisioning workflow."""

from __future__ import annotations


class ProvisioningError(Exception):
    """Raised when provisioning cannot reach the target state.

    These failures are terminal: retrying the same run will not help.
    """

    @classmethod
    def project_not_found(cls, name: str, workspace_id: str) -> ProvisioningError:
        """Create error for a conflicting project that cannot be resolved."""
        return cls(
            f"Expected existing project not found: {name} "
            f"(workspace {workspace_id})"
        )

    @classmethod
    def empty_project_name(cls, email: str) -> ProvisioningError:
        """Create error for an email that yields no usable project name."""
        return cls(f"Cannot derive a project name from email: {email!r}")


__all__ = ["ProvisioningError"]
