"""Domain – Permission aggregate and its mutator."""
from mp_permissions.domain.mutator import PermissionMutator
from mp_permissions.domain.permission import (
    DESCRIPTION_MAX_LENGTH,
    NAME_MAX_LENGTH,
    Permission,
    PermissionSnapshot,
    PermissionType,
)

__all__ = [
    "DESCRIPTION_MAX_LENGTH",
    "NAME_MAX_LENGTH",
    "Permission",
    "PermissionMutator",
    "PermissionSnapshot",
    "PermissionType",
]
