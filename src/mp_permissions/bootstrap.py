"""Composition root – wires settings into adapters, orchestrator, queries and relay."""
from __future__ import annotations

import dataclasses
import functools
from typing import Any

from mp_permissions.adapters.http import HttpxHttpClient
from mp_permissions.adapters.kafka import KafkaEventPublisher, KafkaProducer
from mp_permissions.adapters.search import SearchIndexProjector
from mp_permissions.adapters.sqlalchemy import SqlAlchemySessionFactory, SqlAlchemyUnitOfWork
from mp_permissions.application import (
    OutboxRelay,
    PermissionCommandOrchestrator,
    PermissionQueries,
    RetryPolicy,
)
from mp_permissions.config import PermissionsSettings
from mp_permissions.kernel.time import Clock, SystemClock
from mp_permissions.observability.logging import get_logger
from mp_permissions.observability.metrics import Metrics, NoopMetrics

logger = get_logger(__name__)


@dataclasses.dataclass
class Container:
    """Explicitly wired application graph.

    Build it with :meth:`from_settings` from inside a running event loop
    (the Kafka producer binds to the current loop).
    """

    settings: PermissionsSettings
    session_factory: SqlAlchemySessionFactory
    http_client: HttpxHttpClient
    producer: KafkaProducer
    projector: SearchIndexProjector
    publisher: KafkaEventPublisher
    orchestrator: PermissionCommandOrchestrator
    queries: PermissionQueries
    relay: OutboxRelay

    @classmethod
    def from_settings(
        cls,
        settings: PermissionsSettings,
        *,
        clock: Clock | None = None,
        metrics: Metrics | None = None,
        **engine_kwargs: Any,
    ) -> "Container":
        clock = clock or SystemClock()
        metrics = metrics or NoopMetrics()
        session_factory = SqlAlchemySessionFactory(settings.database_url, **engine_kwargs)
        uow_factory = functools.partial(SqlAlchemyUnitOfWork, session_factory)
        http_client = HttpxHttpClient(settings.search_url, timeout=settings.search_timeout)
        producer = KafkaProducer(settings.kafka_bootstrap_servers)
        projector = SearchIndexProjector(http_client, settings.search_index)
        publisher = KafkaEventPublisher(producer, settings.kafka_topic)
        policy = RetryPolicy(
            max_retries=settings.relay_max_retries,
            base_delay=settings.relay_backoff_base,
            max_delay=settings.relay_backoff_max,
        )
        return cls(
            settings=settings,
            session_factory=session_factory,
            http_client=http_client,
            producer=producer,
            projector=projector,
            publisher=publisher,
            orchestrator=PermissionCommandOrchestrator(uow_factory, clock=clock, metrics=metrics),
            queries=PermissionQueries(uow_factory),
            relay=OutboxRelay(
                uow_factory,
                projector,
                publisher,
                policy,
                clock,
                batch_size=settings.relay_batch_size,
                lease=settings.relay_lease,
                dispatch_timeout=settings.relay_dispatch_timeout,
                concurrency=settings.relay_concurrency,
                poll_interval=settings.relay_poll_interval,
                metrics=metrics,
            ),
        )

    async def init_db(self) -> int:
        """Create the schema and seed the default permission types."""
        await self.session_factory.create_schema()
        async with SqlAlchemyUnitOfWork(self.session_factory) as uow:
            added = await uow.permissions.seed_permission_types()
            await uow.commit()
        logger.info("bootstrap.schema_ready", seeded_types=added)
        return added

    async def start_sinks(self) -> None:
        await self.producer.start()
        await self.projector.ensure_index()

    async def aclose(self) -> None:
        await self.relay.stop()
        if self.producer.started:
            await self.producer.stop()
        await self.http_client.aclose()
        await self.session_factory.dispose()


__all__ = ["Container"]
