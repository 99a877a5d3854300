"""Ledger service: idempotency gate for webhook events.

The processed_events primary key is the synchronization point: two
workers racing to record the same event id cannot both succeed.
"""

import logging

from sqlalchemy.exc import IntegrityError

from artwalls.extensions import db
from artwalls.models.processed_event import ProcessedEvent

logger = logging.getLogger(__name__)


def was_processed(event_id):
    return db.session.get(ProcessedEvent, event_id) is not None


def record_processed(event_id, event_type, note=None):
    """Insert the event id and commit.

    Returns True if this call recorded it, False if it was already there.
    Must only be called after the handler's own work is committed.
    """
    # Core INSERT, not session.add(): the database constraint must decide,
    # regardless of what this session has loaded.
    try:
        db.session.execute(
            db.insert(ProcessedEvent).values(
                stripe_event_id=event_id,
                event_type=event_type,
                note=note,
            )
        )
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.info(f"Event {event_id} already recorded by another worker")
        return False
    return True
