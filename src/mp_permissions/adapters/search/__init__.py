"""Search adapter – projector for the permissions index."""
from mp_permissions.adapters.search.projector import INDEX_MAPPINGS, SearchIndexProjector, build_document

__all__ = ["INDEX_MAPPINGS", "SearchIndexProjector", "build_document"]
