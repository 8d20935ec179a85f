"""API route handlers."""

from api.routes import claims, health, verify

__all__ = ["health", "claims", "verify"]
