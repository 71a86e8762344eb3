import json
from typing import Optional
from kafka import KafkaProducer
from kafka.errors import KafkaError
import structlog
from storefront.core.config import Settings

logger = structlog.get_logger(__name__)


class OrderEvents:
    """Publishes order lifecycle events to ``TOPIC_ORDER_EVENTS``.

    Publishing happens after the order is committed, so a broker failure is
    logged and never turned into a failed request. With no
    ``KAFKA_BOOTSTRAP`` configured, events are only logged.
    """

    def __init__(self, settings: Settings):
        self._bootstrap = settings.KAFKA_BOOTSTRAP
        self._topic = settings.TOPIC_ORDER_EVENTS
        self._max_block_ms = settings.KAFKA_MAX_BLOCK_MS
        self._producer: Optional[KafkaProducer] = None

    def _get_producer(self) -> KafkaProducer:
        if self._producer is None:
            self._producer = KafkaProducer(
                bootstrap_servers=[self._bootstrap],
                value_serializer=lambda v: json.dumps(v).encode("utf-8"),
                key_serializer=lambda v: (v.encode("utf-8") if isinstance(v, str) else v),
                linger_ms=10,
                retries=5,
                # bounds send() when the broker is unreachable
                max_block_ms=self._max_block_ms,
            )
        return self._producer

    def emit(self, event: dict):
        if not self._bootstrap:
            logger.debug("order_event_skipped", type=event.get("type"), order_id=event.get("order_id"))
            return
        try:
            p = self._get_producer()
            p.send(self._topic, key=str(event.get("order_id", "")), value=event)
            p.flush(timeout=self._max_block_ms / 1000)
        except KafkaError as exc:
            logger.error("order_event_publish_failed", type=event.get("type"),
                         order_id=event.get("order_id"), error=str(exc))

    def close(self):
        if self._producer is not None:
            self._producer.close()
            self._producer = None
