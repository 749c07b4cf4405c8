"""Observability – structured logging helpers."""
from mp_permissions.observability.logging.factory import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
