"""HTTP API serving variant assignment and cancellation submission."""

from cancelflow.api.app import create_app

__all__ = ["create_app"]
