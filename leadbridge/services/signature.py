"""
Twilio webhook signature validation.

Twilio signs every callback with HMAC-SHA1 over the full public URL plus the
sorted POST parameters, keyed by the account auth token. Any route that
changes state on behalf of Twilio is wrapped in require_twilio_signature.
"""
import logging
from functools import wraps

from flask import request
from twilio.request_validator import RequestValidator

from leadbridge.config import CALLBACK_BASE_URL, TWILIO_AUTH_TOKEN

logger = logging.getLogger('services.signature')

SIGNATURE_HEADER = 'X-Twilio-Signature'


def validate(signature, url, params, auth_token=None) -> bool:
    """Recompute the signature for url + params and compare in constant time."""
    token = TWILIO_AUTH_TOKEN if auth_token is None else auth_token
    if not token:
        logger.error("TWILIO_AUTH_TOKEN not set — rejecting webhook")
        return False
    if not signature:
        return False
    return RequestValidator(token).validate(url, params or {}, signature)


def public_url():
    """The URL Twilio requested, rebuilt from CALLBACK_BASE_URL behind proxies."""
    if not CALLBACK_BASE_URL:
        return request.url
    url = CALLBACK_BASE_URL.rstrip('/') + request.path
    query = request.query_string.decode('utf-8')
    if query:
        url += '?' + query
    return url


def require_twilio_signature(view):
    """Flask view decorator: 403 with no side effects unless the signature checks out."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        params = request.form.to_dict() if request.method == 'POST' else {}
        signature = request.headers.get(SIGNATURE_HEADER, '')
        if not validate(signature, public_url(), params):
            logger.warning("Invalid Twilio signature on %s", request.path)
            return 'Forbidden', 403
        return view(*args, **kwargs)
    return wrapper
