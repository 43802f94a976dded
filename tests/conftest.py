"""Shared test fixtures."""
import pytest
from unittest.mock import patch
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from twilio.request_validator import RequestValidator

from leadbridge.database import Base
from leadbridge.models.submission import LeadSubmission
from leadbridge.services import circuit_breaker
from leadbridge.services.voice import TwilioVoice

AUTH_TOKEN = 'test-auth-token'
BASE_URL = 'https://leadbridge.example.com'


class FakeRedis:
    """Minimal in-memory Redis fake (hashes, lists, pipelines)."""

    def __init__(self):
        self.hash_store = {}
        self.list_store = {}

    def delete(self, *keys):
        for k in keys:
            self.hash_store.pop(k, None)
            self.list_store.pop(k, None)

    def hset(self, key, field=None, value=None, mapping=None):
        h = self.hash_store.setdefault(key, {})
        if field is not None:
            h[field] = str(value)
        for k, v in (mapping or {}).items():
            h[k] = str(v)

    def hincrby(self, key, field, amount=1):
        h = self.hash_store.setdefault(key, {})
        h[field] = str(int(h.get(field, 0)) + amount)
        return int(h[field])

    def hgetall(self, key):
        return dict(self.hash_store.get(key, {}))

    def rpush(self, key, *values):
        lst = self.list_store.setdefault(key, [])
        lst.extend(str(v) for v in values)
        return len(lst)

    def _slice(self, lst, start, end):
        n = len(lst)
        start = max(start + n if start < 0 else start, 0)
        end = end + n if end < 0 else end
        return lst[start:end + 1]

    def lrange(self, key, start, end):
        return list(self._slice(self.list_store.get(key, []), start, end))

    def ltrim(self, key, start, end):
        self.list_store[key] = self._slice(self.list_store.get(key, []), start, end)

    def pipeline(self):
        return FakePipeline(self)


class FakePipeline:
    """Fake Redis pipeline that replays queued commands on execute()."""

    def __init__(self, redis):
        self._redis = redis
        self._ops = []

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self._ops.append((name, args, kwargs))
            return self
        return queue

    def execute(self):
        results = [getattr(self._redis, name)(*args, **kwargs) for name, args, kwargs in self._ops]
        self._ops = []
        return results


class FakeVoice(TwilioVoice):
    """TwilioVoice with call placement replaced; markup rendering is real."""

    def __init__(self, call_id='CA123', error=None):
        super().__init__(client=object(), from_number='+61290000000')
        self.call_id = call_id
        self.error = error
        self.placed = []

    def place_call(self, to, notification_url, status_callback_url):
        self.placed.append({
            'to': to,
            'notification_url': notification_url,
            'status_callback_url': status_callback_url,
        })
        if self.error is not None:
            raise self.error
        return self.call_id


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with schema created, shared by every session."""
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    import leadbridge.models.lead
    import leadbridge.models.call_event
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, expire_on_commit=False)


@pytest.fixture(autouse=True)
def patch_get_session(session_factory):
    """
    Route the stores' get_session() calls to the in-memory engine.

    The stores do `from leadbridge.database import get_session` at import
    time, so the local bindings are patched.
    """
    with patch('leadbridge.services.lead_store.get_session', side_effect=session_factory), \
            patch('leadbridge.services.call_store.get_session', side_effect=session_factory):
        yield session_factory


@pytest.fixture(autouse=True)
def fake_redis():
    """Swap the shared Redis client for an in-memory fake; fresh breakers per test."""
    fake = FakeRedis()
    circuit_breaker._registry.clear()
    with patch('leadbridge.extensions.redis_client', fake):
        yield fake
    circuit_breaker._registry.clear()


@pytest.fixture
def fake_voice():
    """Successful voice provider wired into the dispatcher."""
    voice = FakeVoice()
    with patch('leadbridge.services.dispatcher.get_voice_provider', return_value=voice):
        yield voice


@pytest.fixture
def twilio_signer():
    """Configure the auth token + public base URL and return a signing helper."""
    validator = RequestValidator(AUTH_TOKEN)

    def sign(path, params=None):
        return validator.compute_signature(BASE_URL + path, params or {})

    with patch('leadbridge.services.signature.TWILIO_AUTH_TOKEN', AUTH_TOKEN), \
            patch('leadbridge.services.signature.CALLBACK_BASE_URL', BASE_URL), \
            patch('leadbridge.services.dispatcher.CALLBACK_BASE_URL', BASE_URL):
        yield sign


@pytest.fixture
def app():
    """Flask test app."""
    from leadbridge import create_app
    app = create_app()
    app.config['TESTING'] = True
    yield app


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as c:
        yield c


@pytest.fixture
def make_lead():
    """Factory fixture — builds a LeadSubmission with sensible defaults."""
    def _make(**overrides):
        defaults = dict(
            lead_id='lead-1001',
            tradie_phone='+61412345678',
            customer_name='Jane Citizen',
            customer_phone='+61498765432',
            job_type='Plumbing',
            location='Parramatta NSW',
            description='Leaking kitchen tap',
            budget='$200-$500',
            timing='This week',
        )
        defaults.update(overrides)
        return LeadSubmission(**defaults)
    return _make
