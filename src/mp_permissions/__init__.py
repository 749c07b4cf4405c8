"""
mp_permissions – Permissions write path with a transactional outbox.

Import path convention::

    from mp_permissions.application import PermissionCommandOrchestrator, OutboxRelay
    from mp_permissions.kernel.errors import PermissionNotFoundError
    from mp_permissions.bootstrap import Container
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
