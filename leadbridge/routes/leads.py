"""
Lead intake route — POST /newlead from the relay.
"""
import logging
from flask import Blueprint, request, jsonify

from leadbridge.models.submission import LeadSubmission, LeadValidationError
from leadbridge.services.dispatcher import dispatch, SENT, SUPPRESSED

logger = logging.getLogger('routes.leads')

bp = Blueprint('leads', __name__)


def _lead_response(status_code, success, message, lead_id='', call_id=None):
    body = {'success': success, 'message': message, 'leadId': lead_id}
    if call_id:
        body['callId'] = call_id
    return jsonify(body), status_code


@bp.route('/newlead', methods=['POST', 'OPTIONS'])
def new_lead():
    """Store a lead and call the tradie (unless inside their DND hours)."""
    if request.method == 'OPTIONS':
        return '', 204

    logger.info("NewLead endpoint invoked")

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        logger.warning("Invalid request body")
        return _lead_response(400, False, 'Invalid request body')

    lead_id = str(data.get('leadId') or '')
    try:
        lead = LeadSubmission.from_payload(data)
        result = dispatch(lead)
    except LeadValidationError as e:
        logger.warning("Rejected lead %s: %s", lead_id or '<none>', e)
        return _lead_response(400, False, str(e), lead_id)
    except Exception:
        logger.error("Error processing lead %s", lead_id, exc_info=True)
        # Nothing was stored, so no leadId is echoed back
        return _lead_response(500, False, 'Internal server error')

    if result.outcome == SENT:
        return _lead_response(200, True, 'Lead received and call initiated', result.lead_id, result.call_id)
    if result.outcome == SUPPRESSED:
        return _lead_response(
            200, True, 'Lead received; call skipped during do-not-disturb hours', result.lead_id,
        )
    return _lead_response(500, False, f'Failed to initiate call: {result.error}', result.lead_id)
