"""Kafka adapter – aiokafka producer and permission event publisher."""
from mp_permissions.adapters.kafka.producer import KafkaProducer
from mp_permissions.adapters.kafka.publisher import IDEMPOTENCY_HEADER, OPERATION_HEADER, KafkaEventPublisher
from mp_permissions.adapters.kafka.serializer import KafkaMessageSerializer

__all__ = ["IDEMPOTENCY_HEADER", "KafkaEventPublisher", "KafkaMessageSerializer", "KafkaProducer", "OPERATION_HEADER"]
