"""
Circuit breaker around voice-provider call placement.

State for each breaker is one Redis hash, `cb:<name>`, shared by every gunicorn
worker:

    state          closed | open
    failures       consecutive failures since the last success
    opened_at      epoch seconds the breaker last opened
    total_success  lifetime counters for /api/health
    total_failure
    last_error

HALF_OPEN is derived, never stored: an open breaker whose reset_timeout has
elapsed lets the next placement through as a probe. A failed probe reopens
it immediately. If Redis is unreachable the breaker reads as CLOSED, so a
Redis outage never blocks a tradie call.
"""
import logging
import time

logger = logging.getLogger('services.circuit_breaker')

CLOSED = 'closed'
OPEN = 'open'
HALF_OPEN = 'half_open'


class CircuitOpenError(Exception):
    """Raised instead of placing a call while the provider's breaker is open."""
    def __init__(self, name, retry_after=None):
        self.name = name
        self.retry_after = retry_after
        super().__init__(f"Circuit breaker '{name}' is OPEN — provider unavailable")


class CircuitBreaker:
    """
    Usage:
        cb = CircuitBreaker('twilio', redis_client, failure_threshold=3, reset_timeout=120)
        call_id = cb.call(voice.place_call, to, url, status_url)
    """

    PREFIX = 'cb'

    def __init__(self, name, redis_client, failure_threshold=3, reset_timeout=120):
        self.name = name
        self.redis = redis_client
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self.key = f'{self.PREFIX}:{name}'

    def _read(self):
        try:
            return self.redis.hgetall(self.key) or {}
        except Exception:
            logger.warning("Redis unavailable — treating circuit '%s' as closed", self.name)
            return {}

    def _state_from(self, data):
        if data.get('state') != OPEN:
            return CLOSED
        if self._open_for(data) > self.reset_timeout:
            return HALF_OPEN
        return OPEN

    @staticmethod
    def _open_for(data):
        opened_at = float(data.get('opened_at') or 0)
        return time.time() - opened_at

    @property
    def state(self):
        return self._state_from(self._read())

    @property
    def failure_count(self):
        return int(self._read().get('failures') or 0)

    def get_health(self):
        """Snapshot for /api/health."""
        data = self._read()
        return {
            'name': self.name,
            'state': self._state_from(data),
            'failure_count': int(data.get('failures') or 0),
            'failure_threshold': self.failure_threshold,
            'reset_timeout': self.reset_timeout,
            'total_success': int(data.get('total_success') or 0),
            'total_failure': int(data.get('total_failure') or 0),
            'last_error': data.get('last_error', ''),
        }

    def call(self, func, *args, **kwargs):
        """Run func unless the breaker is open; record the outcome."""
        data = self._read()
        state = self._state_from(data)
        if state == OPEN:
            retry_after = max(0.0, self.reset_timeout - self._open_for(data))
            raise CircuitOpenError(self.name, retry_after=retry_after)
        if state == HALF_OPEN:
            logger.info("Circuit '%s' half-open, sending probe call", self.name)

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            self._record_failure(e, probing=state == HALF_OPEN)
            raise
        self._record_success()
        return result

    def _record_success(self):
        try:
            pipe = self.redis.pipeline()
            pipe.hset(self.key, mapping={'state': CLOSED, 'failures': 0})
            pipe.hincrby(self.key, 'total_success', 1)
            pipe.execute()
        except Exception:
            logger.debug("Could not record success for circuit '%s'", self.name, exc_info=True)

    def _record_failure(self, error, probing=False):
        try:
            failures = self.redis.hincrby(self.key, 'failures', 1)
            self.redis.hincrby(self.key, 'total_failure', 1)
            fields = {'last_error': str(error)[:200]}

            if probing or failures >= self.failure_threshold:
                fields.update(state=OPEN, opened_at=time.time())
                logger.warning(
                    "Circuit '%s' OPENED after %d failures (threshold=%d): %s",
                    self.name, failures, self.failure_threshold, error,
                )
            else:
                logger.info(
                    "Circuit '%s' failure %d/%d: %s",
                    self.name, failures, self.failure_threshold, error,
                )
            self.redis.hset(self.key, mapping=fields)
        except Exception:
            logger.debug("Could not record failure for circuit '%s'", self.name, exc_info=True)

    def reset(self):
        """Close the breaker by hand (POST /api/health/<service>/reset)."""
        try:
            self.redis.hset(self.key, mapping={'state': CLOSED, 'failures': 0, 'opened_at': 0})
            logger.info("Circuit '%s' manually reset to CLOSED", self.name)
        except Exception as e:
            logger.error("Failed to reset circuit '%s': %s", self.name, e)


# ── Registry (one breaker per voice provider) ────────────────────────────────

_registry = {}


def get_breaker(name, redis_client=None, **kwargs):
    """Breaker for a provider name, created on first use."""
    if name not in _registry:
        if redis_client is None:
            from leadbridge import extensions
            redis_client = extensions.redis_client
        _registry[name] = CircuitBreaker(name, redis_client, **kwargs)
    return _registry[name]


def get_all_breakers():
    return dict(_registry)


def init_breakers(redis_client):
    """Register a breaker for every known voice provider."""
    from leadbridge.services.voice import PROVIDERS
    breakers = {
        name: CircuitBreaker(name, redis_client, failure_threshold=3, reset_timeout=120)
        for name in PROVIDERS
    }
    _registry.update(breakers)
    return breakers
