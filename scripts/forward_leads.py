#!/usr/bin/env python3
"""
Forward scraped leads to the LeadBridge intake endpoint.

Reads a JSON array of scraped lead dicts (leadId, customerName, jobType,
location, ...) and posts the ones not forwarded before. Seen ids are kept in
Redis (last 100), so repeated runs over an overlapping page are safe.

Usage:
    python scripts/forward_leads.py leads.json
    cat leads.json | python scripts/forward_leads.py -
    python scripts/forward_leads.py leads.json --tradie-phone 0412345678 --dnd 21 7
    python scripts/forward_leads.py --reset          # forget all seen ids

Requires: Redis running, RELAY_TRADIE_PHONE (or --tradie-phone) set.
"""
import sys
import os
import json
import argparse
import logging

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from leadbridge.config import (
    RELAY_ENDPOINT, RELAY_TRADIE_PHONE, RELAY_DND_START_HOUR, RELAY_DND_END_HOUR,
)
from leadbridge.extensions import redis_client
from leadbridge.logging_config import configure_logging
from leadbridge.services.dnd import validate_hour
from leadbridge.services.relay import forward_new_leads, normalize_au_phone
from leadbridge.services.seen_leads import SeenLeadTracker

logger = logging.getLogger('scripts.forward_leads')


def _load_leads(source):
    if source == '-':
        data = json.load(sys.stdin)
    else:
        with open(source) as f:
            data = json.load(f)
    if isinstance(data, dict):
        data = data.get('leads', [])
    if not isinstance(data, list):
        raise ValueError('Expected a JSON array of leads')
    return data


def main(argv=None):
    parser = argparse.ArgumentParser(description='Forward new scraped leads to LeadBridge')
    parser.add_argument('source', nargs='?', help="JSON file of scraped leads, or '-' for stdin")
    parser.add_argument('--endpoint', default=RELAY_ENDPOINT)
    parser.add_argument('--tradie-phone', default=RELAY_TRADIE_PHONE)
    parser.add_argument('--dnd', nargs=2, metavar=('START', 'END'),
                        default=[RELAY_DND_START_HOUR, RELAY_DND_END_HOUR],
                        help='Do-not-disturb hours (0-23), e.g. --dnd 21 7')
    parser.add_argument('--reset', action='store_true', help='Forget every seen lead id')
    args = parser.parse_args(argv)

    configure_logging()
    tracker = SeenLeadTracker(redis_client)

    if args.reset:
        tracker.clear()
        logger.info("Seen lead ids cleared")
        return 0

    if not args.source:
        parser.error('a lead source is required')

    try:
        tradie_phone = normalize_au_phone(args.tradie_phone)
        dnd_start, dnd_end = (validate_hour(v) for v in args.dnd)
    except ValueError as e:
        parser.error(str(e))
    if (dnd_start is None) != (dnd_end is None):
        parser.error('provide both DND start and end hours, or neither')

    summary = forward_new_leads(
        _load_leads(args.source), tracker, args.endpoint, tradie_phone,
        dnd_start_hour=dnd_start, dnd_end_hour=dnd_end,
    )
    print(json.dumps(summary, indent=2))
    return 1 if summary['failed'] else 0


if __name__ == '__main__':
    sys.exit(main())
