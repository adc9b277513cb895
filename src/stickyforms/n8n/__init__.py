"""n8n API client and workflow list helpers."""

from .client import N8nClient

__all__ = ["N8nClient"]
