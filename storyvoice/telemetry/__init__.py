"""Structured run logging for pipeline observability."""

from .logger import RunLogger, configure_logging

__all__ = ["RunLogger", "configure_logging"]
