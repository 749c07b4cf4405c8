"""Resilience – retry building blocks."""
