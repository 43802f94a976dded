"""
Logging setup for the web app and the relay CLI.

LOG_FORMAT=json emits one JSON object per line for the log aggregator; the
default is plain text. LOG_LEVEL defaults to INFO.

Call-flow code passes `extra={'lead_id': ..., 'call_sid': ...}` so a lead can
be traced from intake through every Twilio callback; both formats print
those fields when present.
"""
import json
import logging
import sys
from datetime import datetime, timezone

from leadbridge.config import LOG_FORMAT, LOG_LEVEL

CONTEXT_FIELDS = ('lead_id', 'call_sid')

TEXT_FORMAT = '[%(asctime)s] %(levelname)s %(name)s%(context)s: %(message)s'

# Held at WARNING whatever LOG_LEVEL says
QUIET_LOGGERS = (
    'urllib3',
    'twilio.http_client',
    'sqlalchemy.engine',
    'werkzeug',
)


def _context(record):
    return {f: getattr(record, f) for f in CONTEXT_FIELDS if getattr(record, f, None)}


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record):
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        entry.update(_context(record))
        if record.exc_info and record.exc_info[0] is not None:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry)


class TextFormatter(logging.Formatter):
    """Human-readable lines; context appears as ` [lead_id=... call_sid=...]`."""

    def __init__(self):
        super().__init__(TEXT_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    def format(self, record):
        ctx = _context(record)
        record.context = ' [' + ' '.join(f'{k}={v}' for k, v in ctx.items()) + ']' if ctx else ''
        return super().format(record)


def resolve_level(name):
    """Numeric level for a level name; unknown names fall back to INFO."""
    level = logging.getLevelName((name or 'INFO').upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(app=None, level=None, fmt=None):
    """
    Replace the root handlers with a single stderr handler.

    Safe to call repeatedly. When a Flask app is given its own handlers are
    dropped so its records go through the root handler once.
    """
    level = resolve_level(level or LOG_LEVEL)
    fmt = (fmt or LOG_FORMAT or 'text').lower()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if fmt == 'json' else TextFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if app is not None:
        app.logger.handlers.clear()
        app.logger.propagate = True
