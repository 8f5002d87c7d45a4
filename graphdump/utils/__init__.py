"""Utility helpers shared by the command line and the library."""

from .logging_setup import get_logger, log_operation, setup_logging

__all__ = ["get_logger", "log_operation", "setup_logging"]
