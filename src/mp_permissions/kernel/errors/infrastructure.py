"""Infrastructure errors – I/O failures against the store and downstream sinks.

Sink errors never reach the command caller: the write has already committed
by the time the relay talks to the search index or the event stream. The
relay's retry policy only looks at whether a sink error is transient or
permanent.
"""

from __future__ import annotations

from typing import Any

from mp_permissions.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """Infrastructure / I/O failure that is not a business rule violation."""

    default_code = "infrastructure_error"


class TimeoutError(InfrastructureError):  # noqa: A001
    """An I/O operation exceeded its deadline."""

    default_code = "infrastructure_timeout"


class SerializationError(InfrastructureError):
    """Failed to serialize or deserialize a payload."""

    default_code = "serialization_error"

    def __init__(
        self,
        message: str,
        *,
        payload_type: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.payload_type = payload_type


class ExternalServiceError(InfrastructureError):
    """An external service returned an unexpected response."""

    default_code = "external_service_error"

    def __init__(
        self,
        service: str,
        message: str | None = None,
        *,
        status_code: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message or f"External service '{service}' error", **kwargs)
        self.service = service
        self.status_code = status_code


class SinkError(InfrastructureError):
    """A downstream sink (search index, event stream) rejected or missed a message."""

    default_code = "sink_error"

    def __init__(self, sink: str, message: str, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.sink = sink


class TransientSinkError(SinkError):
    """Sink unreachable or timed out; worth retrying with backoff."""

    default_code = "transient_sink_error"


class PermanentSinkError(SinkError):
    """Malformed payload or schema rejection; retrying cannot help."""

    default_code = "permanent_sink_error"


class ProjectionError(SinkError):
    """Base for search-index projection failures."""

    default_code = "projection_error"


class TransientProjectionError(ProjectionError, TransientSinkError):
    default_code = "transient_projection_error"


class PermanentProjectionError(ProjectionError, PermanentSinkError):
    default_code = "permanent_projection_error"


class PublishError(SinkError):
    """Base for event-stream publish failures."""

    default_code = "publish_error"


class TransientPublishError(PublishError, TransientSinkError):
    default_code = "transient_publish_error"


class PermanentPublishError(PublishError, PermanentSinkError):
    default_code = "permanent_publish_error"


__all__ = [
    "ExternalServiceError",
    "InfrastructureError",
    "PermanentProjectionError",
    "PermanentPublishError",
    "PermanentSinkError",
    "ProjectionError",
    "PublishError",
    "SerializationError",
    "SinkError",
    "TimeoutError",
    "TransientProjectionError",
    "TransientPublishError",
    "TransientSinkError",
]
