"""Testing fakes – in-memory doubles for ports."""
from mp_permissions.testing.fakes.clock import FakeClock
from mp_permissions.testing.fakes.metrics import FakeMetricsRegistry
from mp_permissions.testing.fakes.sinks import AlwaysFailingSink, InMemoryEventStream, InMemorySearchIndex

__all__ = [
    "AlwaysFailingSink",
    "FakeClock",
    "FakeMetricsRegistry",
    "InMemoryEventStream",
    "InMemorySearchIndex",
]
