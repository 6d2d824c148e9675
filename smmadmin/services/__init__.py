"""Services package for smmadmin.

This package contains the HTTP clients for external collaborators: the Meta
Graph API and the n8n workflow webhooks.
"""

from .meta_graph import MetaGraphClient
from .webhooks import WebhookClient

__all__ = ['MetaGraphClient', 'WebhookClient']
