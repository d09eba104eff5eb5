"""HTTP adapters over the reconciliation scanner."""

from .server import create_app

__all__ = ["create_app"]
