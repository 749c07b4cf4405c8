"""Observability – logging and metrics."""
