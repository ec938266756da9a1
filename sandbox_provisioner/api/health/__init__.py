"""Service identity and health probe resources.

Usage
-----
Import health resources for route registration::

    from sandbox_provisioner.api.health.resources import HealthResource, ReadyResource
"""
