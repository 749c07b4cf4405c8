"""Search adapter – SearchIndexProjector.

Talks to an Elasticsearch-compatible REST API. Documents are keyed by the
permission id, so replaying a snapshot overwrites the document with the same
content and deleting twice is harmless.
"""
from __future__ import annotations

from typing import Any

from mp_permissions.adapters.http.client import HttpxHttpClient
from mp_permissions.domain.permission import PermissionSnapshot
from mp_permissions.kernel.errors import (
    ExternalServiceError,
    InfrastructureTimeoutError,
    PermanentProjectionError,
    TransientProjectionError,
)
from mp_permissions.observability.logging import get_logger

logger = get_logger(__name__)

SINK = "search-index"

INDEX_MAPPINGS: dict[str, Any] = {
    "mappings": {
        "properties": {
            "id": {"type": "integer"},
            "forename": {"type": "text"},
            "surname": {"type": "text"},
            "fullName": {"type": "text"},
            "permissionTypeId": {"type": "integer"},
            "permissionTypeDescription": {"type": "text"},
            "date": {"type": "date"},
            "createdAt": {"type": "date"},
            "updatedAt": {"type": "date"},
        }
    }
}


def build_document(snapshot: PermissionSnapshot) -> dict[str, Any]:
    """Index document: the snapshot plus a derived ``fullName``."""
    document = snapshot.to_dict()
    document["fullName"] = snapshot.full_name
    return document


class SearchIndexProjector:
    """Applies permission snapshots to the search index."""

    def __init__(self, client: HttpxHttpClient, index: str = "permissions") -> None:
        self._client = client
        self._index = index

    async def upsert(self, snapshot: PermissionSnapshot) -> None:
        document = build_document(snapshot)
        try:
            await self._client.put(f"/{self._index}/_doc/{snapshot.id}", json=document)
        except (ExternalServiceError, InfrastructureTimeoutError) as exc:
            raise self._classify(exc, f"upsert of permission {snapshot.id}") from exc
        logger.info("search.upserted", aggregate_id=snapshot.id, index=self._index)

    async def delete(self, aggregate_id: int) -> None:
        try:
            await self._client.delete(f"/{self._index}/_doc/{aggregate_id}")
        except ExternalServiceError as exc:
            if exc.status_code == 404:
                logger.info("search.delete_absent", aggregate_id=aggregate_id, index=self._index)
                return
            raise self._classify(exc, f"delete of permission {aggregate_id}") from exc
        except InfrastructureTimeoutError as exc:
            raise self._classify(exc, f"delete of permission {aggregate_id}") from exc
        logger.info("search.deleted", aggregate_id=aggregate_id, index=self._index)

    async def ensure_index(self) -> bool:
        """Create the index with its mappings if it does not exist yet."""
        try:
            await self._client.head(f"/{self._index}")
            return False
        except ExternalServiceError as exc:
            if exc.status_code != 404:
                raise self._classify(exc, f"lookup of index {self._index}") from exc
        try:
            await self._client.put(f"/{self._index}", json=INDEX_MAPPINGS)
        except ExternalServiceError as exc:
            # 400 resource_already_exists: another instance won the race.
            if exc.status_code == 400 and "resource_already_exists" in exc.detail.get("body", ""):
                return False
            raise self._classify(exc, f"creation of index {self._index}") from exc
        logger.info("search.index_created", index=self._index)
        return True

    def _classify(
        self, exc: ExternalServiceError | InfrastructureTimeoutError, action: str
    ) -> PermanentProjectionError | TransientProjectionError:
        status = getattr(exc, "status_code", None)
        message = f"Search index rejected {action}: {exc.message}"
        if status == 400:
            return PermanentProjectionError(SINK, message, detail={"status_code": status}, cause=exc)
        return TransientProjectionError(SINK, message, detail={"status_code": status}, cause=exc)


__all__ = ["INDEX_MAPPINGS", "SearchIndexProjector", "build_document"]
