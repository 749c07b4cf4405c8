"""Application layer – commands, orchestrator, queries and the outbox relay."""
from mp_permissions.application.commands import (
    Command,
    ModifyPermission,
    RemovePermission,
    RequestPermission,
    command_from_dict,
)
from mp_permissions.application.orchestrator import CommandState, PermissionCommandOrchestrator
from mp_permissions.application.queries import PermissionQueries
from mp_permissions.application.relay import FailureKind, OutboxRelay, RelayReport, RetryPolicy

__all__ = [
    "Command",
    "CommandState",
    "FailureKind",
    "ModifyPermission",
    "OutboxRelay",
    "PermissionCommandOrchestrator",
    "PermissionQueries",
    "RelayReport",
    "RemovePermission",
    "RequestPermission",
    "RetryPolicy",
    "command_from_dict",
]
