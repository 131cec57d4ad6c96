"""API Routes Package."""

from api.routes import audits, health

__all__ = [
    "audits",
    "health",
]
