"""
Notification dispatcher — intake lead → DND gate → tradie call → bookkeeping.

Order of externally visible writes:
  1. Lead saved as Received (before anything else can fail)
  2. DND window active → Lead Skipped_DND, no call, no call event
  3. Call placed → Lead Notified + call id, CallEvent Initiated
     Call failed → Lead Failed (a timeout leaves it Received for follow-up)

Nothing here retries; a failed lead is resubmitted by hand.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlencode

from leadbridge.config import (
    CALLBACK_BASE_URL, LEAD_FAILED, LEAD_NOTIFIED, LEAD_SKIPPED_DND,
)
from leadbridge.models.submission import LeadSubmission, LeadValidationError
from leadbridge.services.call_store import save_call_event
from leadbridge.services.circuit_breaker import CircuitOpenError, get_breaker
from leadbridge.services.dnd import is_suppressed
from leadbridge.services.lead_store import save_lead, update_lead_status
from leadbridge.services.voice import CallPlacementError, CallTimeoutError, get_voice_provider

logger = logging.getLogger('services.dispatcher')

SENT = 'sent'
SUPPRESSED = 'suppressed'
FAILED = 'failed'

DND_REASON = 'DND_HOURS'


@dataclass
class DispatchResult:
    """Outcome of one dispatch: sent (call_id), suppressed (reason) or failed (error)."""
    outcome: str
    lead_id: str
    call_id: Optional[str] = None
    reason: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome != FAILED


def callback_url(path, **params):
    """Absolute URL on this app for Twilio to call back; empty params are dropped."""
    url = CALLBACK_BASE_URL.rstrip('/') + path
    query = {k: v for k, v in params.items() if v}
    if query:
        url += '?' + urlencode(query)
    return url


def notification_url(lead: LeadSubmission) -> str:
    return callback_url(
        '/twilio/notification',
        leadId=lead.lead_id,
        customerName=lead.customer_name,
        jobType=lead.job_type,
        location=lead.location,
        budget=lead.budget,
        timing=lead.timing,
    )


def dispatch(lead: LeadSubmission, voice=None, now=None) -> DispatchResult:
    """
    Store the lead and notify the tradie unless the DND window is active.

    Raises LeadValidationError (before any write) when leadId or tradiePhone
    is empty. Store errors on the initial save propagate to the caller.
    """
    missing = lead.missing_fields()
    if missing:
        raise LeadValidationError(f"Missing required fields: {', '.join(missing)}")

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    logger.info(
        "Processing lead %s for tradie %s", lead.lead_id, lead.tradie_phone,
        extra={'lead_id': lead.lead_id},
    )
    save_lead(lead, received_at=now)

    if is_suppressed(lead.dnd_start_hour, lead.dnd_end_hour, now):
        logger.info(
            "Lead %s inside DND window %s-%s — call skipped",
            lead.lead_id, lead.dnd_start_hour, lead.dnd_end_hour,
        )
        update_lead_status(lead.lead_id, LEAD_SKIPPED_DND, received_at=now)
        return DispatchResult(SUPPRESSED, lead.lead_id, reason=DND_REASON)

    voice = voice or get_voice_provider()
    try:
        call_id = get_breaker(voice.name).call(
            voice.place_call,
            lead.tradie_phone,
            notification_url(lead),
            callback_url('/twilio/status'),
        )
    except CallTimeoutError as e:
        logger.error("Call placement timed out for lead %s: %s", lead.lead_id, e)
        return DispatchResult(FAILED, lead.lead_id, error=str(e))
    except (CallPlacementError, CircuitOpenError) as e:
        logger.error("Failed to initiate call for lead %s: %s", lead.lead_id, e)
        update_lead_status(lead.lead_id, LEAD_FAILED, received_at=now)
        return DispatchResult(FAILED, lead.lead_id, error=str(e))

    update_lead_status(lead.lead_id, LEAD_NOTIFIED, received_at=now, call_id=call_id)
    save_call_event(
        call_id=call_id,
        lead_id=lead.lead_id,
        tradie_phone=lead.tradie_phone,
        job_type=lead.job_type,
        location=lead.location,
        customer_phone=lead.customer_phone,
        created_at=now,
    )
    logger.info(
        "Call initiated successfully: %s", call_id,
        extra={'lead_id': lead.lead_id, 'call_sid': call_id},
    )
    return DispatchResult(SENT, lead.lead_id, call_id=call_id)
