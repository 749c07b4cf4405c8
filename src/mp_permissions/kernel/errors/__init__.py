"""Kernel error hierarchy – public re-export surface.

Hierarchy::

    BaseError
    ├── DomainError                (domain.py)       → returned to the caller
    │   ├── ValidationError
    │   ├── NotFoundError
    │   │   ├── PermissionNotFoundError
    │   │   └── PermissionTypeNotFoundError
    │   └── ConflictError
    ├── ApplicationError           (application.py)
    │   └── UnsupportedCommandError
    └── InfrastructureError        (infrastructure.py) → handled by the relay
        ├── TimeoutError
        ├── SerializationError
        ├── ExternalServiceError
        └── SinkError
            ├── TransientSinkError   (TransientProjectionError, TransientPublishError)
            └── PermanentSinkError   (PermanentProjectionError, PermanentPublishError)
"""

from mp_permissions.kernel.errors.application import ApplicationError, UnsupportedCommandError
from mp_permissions.kernel.errors.base import BaseError
from mp_permissions.kernel.errors.domain import (
    ConflictError,
    DomainError,
    NotFoundError,
    PermissionNotFoundError,
    PermissionTypeNotFoundError,
    ValidationError,
)
from mp_permissions.kernel.errors.infrastructure import (
    ExternalServiceError,
    InfrastructureError,
    PermanentProjectionError,
    PermanentPublishError,
    PermanentSinkError,
    ProjectionError,
    PublishError,
    SerializationError,
    SinkError,
    TransientProjectionError,
    TransientPublishError,
    TransientSinkError,
)
from mp_permissions.kernel.errors.infrastructure import TimeoutError as InfrastructureTimeoutError

__all__ = [
    "ApplicationError",
    "BaseError",
    "ConflictError",
    "DomainError",
    "ExternalServiceError",
    "InfrastructureError",
    "InfrastructureTimeoutError",
    "NotFoundError",
    "PermanentProjectionError",
    "PermanentPublishError",
    "PermanentSinkError",
    "PermissionNotFoundError",
    "PermissionTypeNotFoundError",
    "ProjectionError",
    "PublishError",
    "SerializationError",
    "SinkError",
    "TransientProjectionError",
    "TransientPublishError",
    "TransientSinkError",
    "UnsupportedCommandError",
    "ValidationError",
]
