"""Adapters – SQLAlchemy store, Kafka stream, HTTP search index."""
