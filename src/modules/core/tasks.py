"""Outbox relay.

Publishes committed ``OutboxEvent`` rows on the in-process event bus.
Rows whose event class has no subscriber are failed so they surface in
monitoring instead of being silently skipped.
"""

from __future__ import annotations

import structlog
from celery import shared_task
from django.conf import settings

from modules.core.models import OutboxEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


@shared_task(name="core.publish_outbox_events")
def publish_outbox_events(batch_size: int | None = None) -> dict:
    batch_size = batch_size or settings.OUTBOX_BATCH_SIZE
    rows = list(
        OutboxEvent.objects.deliverable(settings.OUTBOX_MAX_RETRIES)[:batch_size]
    )

    published = failed = 0
    for row in rows:
        log = logger.bind(event_type=row.event_type, outbox_id=str(row.id))
        event_class = event_bus.event_class(row.event_type)
        if event_class is None:
            row.mark_as_failed(f"No handler registered for {row.event_type}.")
            log.warning("outbox.unroutable_event")
            failed += 1
            continue
        try:
            event_bus.publish(event_class.from_payload(row.payload))
        except Exception as exc:
            row.mark_as_failed(str(exc))
            log.exception("outbox.publish_failed")
            failed += 1
            continue
        row.mark_as_published()
        published += 1

    logger.info("outbox.relay_completed", published=published, failed=failed)
    return {"published": published, "failed": failed}
