"""SQLAlchemy adapter – session factory, unit of work, gateway, outbox store."""
from mp_permissions.adapters.sqlalchemy.gateway import DEFAULT_PERMISSION_TYPES, SqlAlchemyPermissionGateway
from mp_permissions.adapters.sqlalchemy.models import Base, OutboxMessageRow, PermissionRow, PermissionTypeRow
from mp_permissions.adapters.sqlalchemy.outbox import SqlAlchemyOutboxStore
from mp_permissions.adapters.sqlalchemy.session import SqlAlchemySessionFactory
from mp_permissions.adapters.sqlalchemy.uow import SqlAlchemyUnitOfWork

__all__ = [
    "Base",
    "DEFAULT_PERMISSION_TYPES",
    "OutboxMessageRow",
    "PermissionRow",
    "PermissionTypeRow",
    "SqlAlchemyOutboxStore",
    "SqlAlchemyPermissionGateway",
    "SqlAlchemySessionFactory",
    "SqlAlchemyUnitOfWork",
]
