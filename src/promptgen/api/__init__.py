"""HTTP API for promptgen."""

from promptgen.api.app import create_app

__all__ = ["create_app"]
