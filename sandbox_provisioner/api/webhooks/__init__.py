"""Webhook endpoint resources.

Usage
-----
Import the webhook resource for route registration::

    from sandbox_provisioner.api.webhooks.resources import WebhookResource
"""
