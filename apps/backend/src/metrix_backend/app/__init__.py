"""FastAPI application entrypoint for the Metrix collector."""

from metrix.logging_config import configure_logging
from metrix_backend.app.dependencies import _create_repository, get_repository
from metrix_backend.app.factory import create_app


__all__ = ["_create_repository", "configure_logging", "create_app", "get_repository"]
