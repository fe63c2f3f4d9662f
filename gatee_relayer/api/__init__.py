"""HTTP entry point for the relayer."""

from .app import create_app

__all__ = ["create_app"]
