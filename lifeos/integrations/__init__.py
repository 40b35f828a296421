"""Integration package root."""

from lifeos.integrations.base.registry import IntegrationRegistry, integration_registry

__all__ = ["IntegrationRegistry", "integration_registry"]
