"""
Lead relay — forwards newly scraped leads to the intake endpoint.

Runs next to the scraper (one agent, one thread). Leads arrive as dicts in the
scraper's camelCase shape; ids already in the SeenLeadTracker are dropped.
A lead is marked seen once the backend has stored it, even when the call
itself failed; resubmission is then a manual action. Transport errors and 5xx
answers that echo no leadId leave the lead unseen so the next poll picks it up.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

import requests

logger = logging.getLogger('services.relay')

_MOBILE = re.compile(r'^(\+?61|0)4\d{8}$')
_LANDLINE = re.compile(r'^(\+?61|0)[2-9]\d{8}$')


def normalize_au_phone(phone: str) -> str:
    """Validate an Australian mobile/landline number and return it in E.164."""
    cleaned = re.sub(r'[\s\-()]', '', phone or '')
    if not (_MOBILE.match(cleaned) or _LANDLINE.match(cleaned)):
        raise ValueError(f'Not a valid Australian phone number: {phone!r}')
    if cleaned.startswith('+'):
        return cleaned
    if cleaned.startswith('61'):
        return '+' + cleaned
    return '+61' + cleaned[1:]


def build_payload(lead: Dict[str, Any], tradie_phone: str,
                  dnd_start_hour: Optional[int] = None,
                  dnd_end_hour: Optional[int] = None) -> Dict[str, Any]:
    """Intake body for POST /newlead."""
    payload = {
        'leadId': str(lead.get('leadId', '')).strip(),
        'customerName': lead.get('customerName') or 'Unknown',
        'customerPhone': lead.get('customerPhone') or '',
        'jobType': lead.get('jobType') or 'General Service',
        'location': lead.get('location') or '',
        'tradiePhone': tradie_phone,
        'timestamp': lead.get('timestamp') or datetime.now(timezone.utc).isoformat(),
    }
    for key in ('description', 'budget', 'timing'):
        if lead.get(key):
            payload[key] = lead[key]
    if dnd_start_hour is not None and dnd_end_hour is not None:
        payload['dndStartHour'] = dnd_start_hour
        payload['dndEndHour'] = dnd_end_hour
    return payload


def forward_new_leads(leads: Iterable[Dict[str, Any]], tracker, endpoint: str,
                      tradie_phone: str, dnd_start_hour: Optional[int] = None,
                      dnd_end_hour: Optional[int] = None, session=None,
                      timeout: float = 10) -> Dict[str, Any]:
    """
    POST every unseen lead to `endpoint`.

    Returns {'forwarded': [...], 'skipped': int, 'failed': [...]}; a lead id
    lands in 'forwarded' when the backend stored it (its JSON body is logged).
    """
    http = session or requests
    forwarded, failed = [], []
    skipped = 0

    for lead in leads:
        lead_id = str(lead.get('leadId') or '').strip()
        if not lead_id:
            logger.warning("Dropping scraped lead without an id: %s", lead)
            continue
        if tracker.has_seen(lead_id):
            skipped += 1
            continue

        payload = build_payload(lead, tradie_phone, dnd_start_hour, dnd_end_hour)
        try:
            resp = http.post(endpoint, json=payload, timeout=timeout)
        except requests.RequestException as e:
            logger.error("Could not reach backend for lead %s: %s", lead_id, e)
            failed.append(lead_id)
            continue

        body = _body(resp)
        if resp.status_code >= 500 and not _stored(body):
            logger.error("Backend did not store lead %s (%s): %s", lead_id, resp.status_code, body)
            failed.append(lead_id)
            continue

        tracker.mark_seen(lead_id)
        forwarded.append(lead_id)
        if resp.ok:
            logger.info("Lead %s forwarded: %s", lead_id, body)
        else:
            logger.warning("Backend answered %s for lead %s: %s", resp.status_code, lead_id, body)

    logger.info("%d forwarded, %d already seen, %d failed", len(forwarded), skipped, len(failed))
    return {'forwarded': forwarded, 'skipped': skipped, 'failed': failed}


def _stored(body):
    return isinstance(body, dict) and bool(body.get('leadId'))


def _body(resp):
    try:
        return resp.json()
    except ValueError:
        return resp.text[:200]
