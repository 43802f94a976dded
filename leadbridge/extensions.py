"""
Shared client instances — Redis, Twilio.

Built at import time. Neither constructor opens a connection, so importing this
module is safe even when env vars are missing during tests.
"""
import logging
import redis

from leadbridge.config import (
    REDIS_URL,
    TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, REQUEST_TIMEOUT,
)

logger = logging.getLogger('leadbridge.extensions')

# ── Redis ─────────────────────────────────────────────────────────────────────
redis_client = redis.from_url(REDIS_URL, decode_responses=True)

# ── Twilio ────────────────────────────────────────────────────────────────────
twilio_client = None
if TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN:
    try:
        from twilio.http.http_client import TwilioHttpClient
        from twilio.rest import Client
        twilio_client = Client(
            TWILIO_ACCOUNT_SID,
            TWILIO_AUTH_TOKEN,
            http_client=TwilioHttpClient(timeout=REQUEST_TIMEOUT),
        )
        logger.info("Twilio client initialized successfully")
    except Exception as e:
        logger.error("Error initializing Twilio client: %s", e)
else:
    logger.warning("Twilio credentials not set — outbound calls will fail")
