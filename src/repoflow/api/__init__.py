"""HTTP API for repository flow metrics."""

from repoflow.api.app import create_app

__all__ = ["create_app"]
