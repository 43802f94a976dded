"""
Twilio webhook routes — voice markup for the notification call, keypress
handling, and call status/duration callbacks.

Every route is signature-checked. Status callbacks always answer 200 "OK"
once authenticated, even when the call id is unknown: Twilio only needs the
acknowledgment.
"""
import logging
from flask import Blueprint, Response, request

from leadbridge.config import LEAD_CALLING_CUSTOMER, LEAD_COMPLETED, LEAD_DECLINED
from leadbridge.services.call_store import find_call_event, update_call_duration, update_call_status
from leadbridge.services.dispatcher import callback_url
from leadbridge.services.lead_store import update_lead_status
from leadbridge.services.signature import require_twilio_signature
from leadbridge.services.voice import get_voice_provider

logger = logging.getLogger('routes.twilio')

bp = Blueprint('twilio', __name__, url_prefix='/twilio')


def _twiml(document):
    return Response(document, status=200, mimetype='text/xml')


def _ok():
    return Response('OK', status=200, mimetype='text/plain')


def _parse_duration(*values):
    for value in values:
        if value in (None, ''):
            continue
        try:
            return max(0, int(value))
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric call duration %r", value)
    return 0


@bp.route('/notification', methods=['GET', 'POST'])
@require_twilio_signature
def notification():
    """Spoken lead summary + keypress prompt, built from the query string."""
    try:
        lead_id = request.args.get('leadId', '')
        voice = get_voice_provider()
        document = voice.notification_twiml(
            customer_name=request.args.get('customerName', ''),
            job_type=request.args.get('jobType', ''),
            location=request.args.get('location', ''),
            action_url=callback_url('/twilio/tradie-response', leadId=lead_id),
            budget=request.args.get('budget'),
            timing=request.args.get('timing'),
        )
        logger.info("Serving notification markup for lead %s", lead_id)
        return _twiml(document)
    except Exception:
        logger.error("Error building notification markup", exc_info=True)
        return Response('Error', status=500, mimetype='text/plain')


@bp.route('/tradie-response', methods=['POST'])
@require_twilio_signature
def tradie_response():
    """Keypress from the tradie: 1 connects to the customer, 2 skips."""
    try:
        digits = request.form.get('Digits', '').strip()
        call_sid = request.form.get('CallSid', '')
        lead_id = request.args.get('leadId', '')
        voice = get_voice_provider()

        # Call context lives in the call event store, keyed by call id
        event = find_call_event(call_sid) if call_sid else None
        if event is not None and not lead_id:
            lead_id = event.lead_id

        logger.info(
            "Tradie pressed %r for lead %s", digits, lead_id,
            extra={'lead_id': lead_id, 'call_sid': call_sid},
        )

        if digits == '1':
            if lead_id:
                update_lead_status(lead_id, LEAD_CALLING_CUSTOMER)
            customer_phone = event.customer_phone if event is not None else None
            return _twiml(voice.bridge_twiml(customer_phone, callback_url('/twilio/call-complete')))

        if digits == '2':
            if lead_id:
                update_lead_status(lead_id, LEAD_DECLINED)
            return _twiml(voice.skip_twiml())

        return _twiml(voice.invalid_input_twiml())
    except Exception:
        logger.error("Error handling tradie response", exc_info=True)
        return Response('Error', status=500, mimetype='text/plain')


@bp.route('/call-complete', methods=['POST'])
@require_twilio_signature
def call_complete():
    """
    Dial action for the customer leg: record its outcome and duration.

    CallStatus here belongs to the tradie's call, which is still in progress;
    DialCallStatus reports the customer leg. The lead is Completed only when
    the customer actually answered.
    """
    try:
        call_sid = request.form.get('CallSid', '')
        if not call_sid:
            logger.warning("call-complete callback without CallSid")
            return _ok()

        duration = _parse_duration(
            request.form.get('DialCallDuration'), request.form.get('CallDuration'),
        )
        status = request.form.get('DialCallStatus') or request.form.get('CallStatus') or 'completed'

        event = update_call_duration(call_sid, duration, status)
        if event is None:
            return _ok()

        if status.lower() == 'completed':
            update_lead_status(event.lead_id, LEAD_COMPLETED)
        else:
            logger.warning(
                "Customer leg ended with %s for lead %s", status, event.lead_id,
                extra={'lead_id': event.lead_id, 'call_sid': call_sid},
            )
        return _ok()
    except Exception:
        logger.error("Error handling call-complete callback", exc_info=True)
        return Response('Error', status=500, mimetype='text/plain')


@bp.route('/status', methods=['POST'])
@require_twilio_signature
def call_status():
    """Provider status callback (initiated / ringing / answered / completed)."""
    try:
        call_sid = request.form.get('CallSid', '')
        status = request.form.get('CallStatus', '')
        if not call_sid:
            logger.warning("Status callback without CallSid")
            return _ok()

        logger.info("Status callback: %s", status, extra={'call_sid': call_sid})
        if request.form.get('CallDuration') not in (None, ''):
            duration = _parse_duration(request.form.get('CallDuration'))
            update_call_duration(call_sid, duration, status)
        else:
            update_call_status(call_sid, status)
        return _ok()
    except Exception:
        logger.error("Error handling status callback", exc_info=True)
        return Response('Error', status=500, mimetype='text/plain')
