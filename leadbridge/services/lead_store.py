"""
Lead store — upsert leads and move them through their status transitions.

Leads are keyed by (received date, lead id). save_lead() raises on failure so
intake can answer 500; status updates log and return False instead.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy.orm.exc import StaleDataError

from leadbridge.config import (
    LEAD_RECEIVED, LEAD_TRANSITIONS, CALL_LOOKBACK_DAYS,
)
from leadbridge.database import get_session, partition_key_for, recent_partition_keys
from leadbridge.models.lead import LeadEntity

logger = logging.getLogger('services.lead_store')


def save_lead(lead, received_at=None):
    """
    INSERT or overwrite a lead with status Received.

    Re-submitting a lead id on the same day resets it to Received (manual
    resubmission by an operator).
    """
    received_at = received_at or datetime.now(timezone.utc)
    partition_key = partition_key_for(received_at)

    session = get_session()
    try:
        entity = session.get(LeadEntity, (partition_key, lead.lead_id))
        if entity is None:
            entity = LeadEntity(partition_key=partition_key, row_key=lead.lead_id)
            session.add(entity)

        entity.lead_id = lead.lead_id
        entity.customer_name = lead.customer_name
        entity.customer_phone = lead.customer_phone
        entity.job_type = lead.job_type
        entity.location = lead.location
        entity.description = lead.description
        entity.budget = lead.budget
        entity.timing = lead.timing
        entity.tradie_phone = lead.tradie_phone
        entity.received_at = received_at
        entity.status = LEAD_RECEIVED
        entity.call_id = None

        session.commit()
        logger.info("Lead saved: %s", lead.lead_id)
        return entity
    except Exception:
        session.rollback()
        logger.error("Failed to save lead %s", lead.lead_id, exc_info=True)
        raise
    finally:
        session.close()


def get_lead(lead_id, received_at):
    """Fetch a lead by id and the day it was received. Returns None if absent."""
    session = get_session()
    try:
        return session.get(LeadEntity, (partition_key_for(received_at), lead_id))
    finally:
        session.close()


def find_lead(lead_id, now=None):
    """Probe the recent daily partitions (today first) for a lead id."""
    session = get_session()
    try:
        return _probe(session, lead_id, now)
    finally:
        session.close()


def update_lead_status(lead_id, status, received_at=None, call_id=None, now=None):
    """
    Move a lead to `status`, optionally recording the call id.

    When received_at is unknown the recent partitions are probed. Only forward
    transitions from LEAD_TRANSITIONS are applied; a concurrent modification
    (stale entity tag) is reported as a failed update.
    """
    session = get_session()
    try:
        if received_at is not None:
            entity = session.get(LeadEntity, (partition_key_for(received_at), lead_id))
        else:
            entity = _probe(session, lead_id, now)

        if entity is None:
            logger.warning("Cannot update status — lead not found: %s", lead_id)
            return False

        if entity.status != status and status not in LEAD_TRANSITIONS.get(entity.status, set()):
            logger.warning(
                "Rejected lead transition %s: %s -> %s", lead_id, entity.status, status,
            )
            return False

        entity.status = status
        if call_id is not None:
            entity.call_id = call_id

        session.commit()
        logger.info("Lead status updated: %s -> %s", lead_id, status)
        return True
    except StaleDataError:
        session.rollback()
        logger.warning("Lead %s was modified concurrently — status %s not applied", lead_id, status)
        return False
    except Exception:
        session.rollback()
        logger.error("Failed to update lead status %s", lead_id, exc_info=True)
        return False
    finally:
        session.close()


def _probe(session, lead_id, now=None):
    for partition_key in recent_partition_keys(CALL_LOOKBACK_DAYS, now):
        entity = session.get(LeadEntity, (partition_key, lead_id))
        if entity is not None:
            return entity
    return None
