"""
Centralized configuration — all env vars, constants, status tables.
"""
import os


# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')

# ── Redis ─────────────────────────────────────────────────────────────────────
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')

# ── Storage ───────────────────────────────────────────────────────────────────
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///local.db')

# ── Twilio ────────────────────────────────────────────────────────────────────
TWILIO_ACCOUNT_SID = os.getenv('TWILIO_ACCOUNT_SID')
TWILIO_AUTH_TOKEN = os.getenv('TWILIO_AUTH_TOKEN', '')
TWILIO_PHONE_NUMBER = os.getenv('TWILIO_PHONE_NUMBER')
TWILIO_VOICE = os.getenv('TWILIO_VOICE', 'Polly.Nicole')
TWILIO_LANGUAGE = os.getenv('TWILIO_LANGUAGE', 'en-AU')

# Public base URL Twilio uses to reach this app (also the URL Twilio signs)
CALLBACK_BASE_URL = os.getenv('CALLBACK_BASE_URL', '')

# Seconds before an outbound provider request is abandoned
REQUEST_TIMEOUT = float(os.getenv('REQUEST_TIMEOUT', '15'))

VOICE_PROVIDER = os.getenv('VOICE_PROVIDER', 'twilio')

# ── HTTP ──────────────────────────────────────────────────────────────────────
ALLOWED_ORIGIN = os.getenv('ALLOWED_ORIGIN', '*')
APP_VERSION = os.getenv('APP_VERSION', '1.0.0')

# ── Do-not-disturb ───────────────────────────────────────────────────────────
# Single-region deployment: DND hours are always evaluated in this zone.
DND_TIMEZONE = 'Australia/Sydney'

# ── Call lookup ───────────────────────────────────────────────────────────────
# Callbacks only carry the call id, so lookups probe this many daily partitions.
CALL_LOOKBACK_DAYS = 7

# ── Relay (client side) ──────────────────────────────────────────────────────
RELAY_ENDPOINT = os.getenv('RELAY_ENDPOINT', 'http://localhost:8080/newlead')
RELAY_TRADIE_PHONE = os.getenv('RELAY_TRADIE_PHONE', '')
RELAY_DND_START_HOUR = os.getenv('RELAY_DND_START_HOUR')
RELAY_DND_END_HOUR = os.getenv('RELAY_DND_END_HOUR')
SEEN_LEADS_KEY = 'relay:seen_leads'
SEEN_LEADS_LIMIT = 100

# ── Lead status values ───────────────────────────────────────────────────────
LEAD_RECEIVED = 'Received'
LEAD_NOTIFIED = 'Notified'
LEAD_SKIPPED_DND = 'Skipped_DND'
LEAD_FAILED = 'Failed'
LEAD_CALLING_CUSTOMER = 'Calling Customer'
LEAD_DECLINED = 'Declined'
LEAD_COMPLETED = 'Completed'

LEAD_TRANSITIONS = {
    LEAD_RECEIVED: {LEAD_NOTIFIED, LEAD_SKIPPED_DND, LEAD_FAILED},
    LEAD_NOTIFIED: {LEAD_CALLING_CUSTOMER, LEAD_DECLINED, LEAD_COMPLETED},
    LEAD_CALLING_CUSTOMER: {LEAD_COMPLETED},
}

# ── Call status values ───────────────────────────────────────────────────────
CALL_INITIATED = 'Initiated'

# Provider statuses ranked by progression; terminal statuses share the top rank.
CALL_STATUS_RANK = {
    'queued': 0,
    'initiated': 0,
    'ringing': 1,
    'answered': 2,
    'in-progress': 2,
    'completed': 3,
    'busy': 3,
    'no-answer': 3,
    'failed': 3,
    'canceled': 3,
}
TERMINAL_CALL_RANK = 3
