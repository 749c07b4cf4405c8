"""Kernel time – Clock port + implementations."""
from mp_permissions.kernel.time.clock import Clock, FrozenClock, SystemClock, as_utc

__all__ = ["Clock", "FrozenClock", "SystemClock", "as_utc"]
