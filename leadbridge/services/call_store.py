"""
Call event store + call status state machine.

Call events are keyed by (created date, provider call id). Provider callbacks
only carry the call id, so updates probe the last CALL_LOOKBACK_DAYS daily
partitions (today backward) and apply to the first match. A call id that is
not found within the window is logged and dropped.

Statuses are ranked (see CALL_STATUS_RANK): a callback that would move a call
backward (e.g. a late "ringing" after "completed") leaves the status alone.
"""
import logging
from datetime import datetime, timezone

from leadbridge.config import (
    CALL_INITIATED, CALL_LOOKBACK_DAYS, CALL_STATUS_RANK, TERMINAL_CALL_RANK,
)
from leadbridge.database import get_session, partition_key_for, recent_partition_keys
from leadbridge.models.call_event import CallEventEntity

logger = logging.getLogger('services.call_store')


def save_call_event(call_id, lead_id, tradie_phone, job_type='', location='',
                    customer_phone=None, status=CALL_INITIATED, created_at=None):
    """
    Record a placed call. Returns the entity, or None if the write failed.

    The call already exists at the provider by the time this runs, so a write
    failure is logged rather than raised.
    """
    created_at = created_at or datetime.now(timezone.utc)
    session = get_session()
    try:
        event = session.get(CallEventEntity, (partition_key_for(created_at), call_id))
        if event is None:
            event = CallEventEntity(partition_key=partition_key_for(created_at), row_key=call_id)
            session.add(event)

        event.call_id = call_id
        event.lead_id = lead_id
        event.tradie_phone = tradie_phone
        event.customer_phone = customer_phone
        event.job_type = job_type
        event.location = location
        event.status = status
        event.duration_seconds = 0
        event.created_at = created_at

        session.commit()
        logger.info("Call event saved: %s — %s", call_id, status)
        return event
    except Exception:
        session.rollback()
        logger.error("Failed to save call event %s", call_id, exc_info=True)
        return None
    finally:
        session.close()


def get_call_event(call_id, created_at):
    """Fetch a call event by id and creation day. Returns None if absent."""
    session = get_session()
    try:
        return session.get(CallEventEntity, (partition_key_for(created_at), call_id))
    finally:
        session.close()


def find_call_event(call_id, now=None):
    """Bounded backward probe for a call id. Returns None if not seen recently."""
    session = get_session()
    try:
        return _probe(session, call_id, now)
    finally:
        session.close()


def update_call_status(call_id, status, now=None):
    """Apply a status callback. Returns the updated event, or None if not found."""
    def apply(event, at):
        _apply_status(event, status, at)

    event = _update(call_id, apply, now)
    if event is not None:
        logger.info("Call status updated: %s -> %s", call_id, event.status)
    return event


def update_call_duration(call_id, duration_seconds, status, now=None):
    """Apply a duration (+ status) callback. Returns the updated event, or None."""
    def apply(event, at):
        event.duration_seconds = int(duration_seconds or 0)
        _apply_status(event, status, at)

    event = _update(call_id, apply, now)
    if event is not None:
        logger.info("Call duration updated: %s — %ss", call_id, event.duration_seconds)
    return event


# ── Private helpers ──────────────────────────────────────────────────────────

def _probe(session, call_id, now=None):
    for partition_key in recent_partition_keys(CALL_LOOKBACK_DAYS, now):
        event = session.get(CallEventEntity, (partition_key, call_id))
        if event is not None:
            return event
    return None


def _update(call_id, apply, now=None):
    now = now or datetime.now(timezone.utc)
    session = get_session()
    try:
        event = _probe(session, call_id, now)
        if event is None:
            logger.warning(
                "Call event not found in last %d days: %s", CALL_LOOKBACK_DAYS, call_id,
            )
            return None

        apply(event, now)
        session.commit()
        return event
    except Exception:
        session.rollback()
        logger.error("Failed to update call event %s", call_id, exc_info=True)
        return None
    finally:
        session.close()


def _apply_status(event, status, at):
    """Set the status unless it ranks below the stored one. Returns True if applied."""
    if not status:
        return False

    new_rank = CALL_STATUS_RANK.get(status.lower())
    current_rank = CALL_STATUS_RANK.get((event.status or '').lower())

    if new_rank is not None and current_rank is not None and new_rank < current_rank:
        logger.info(
            "Ignoring out-of-order status for %s: %s after %s",
            event.call_id, status, event.status,
        )
        return False

    event.status = status
    if new_rank == TERMINAL_CALL_RANK:
        if event.completed_at is None:
            event.completed_at = at
        if status.lower() != 'completed':
            event.error_message = f'Call ended with status {status}'
    return True
