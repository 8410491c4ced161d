"""Application services for tool-relay."""

from .logger import configure_logging

__all__ = ["configure_logging"]
