"""
Seen-lead tracker — the relay's at-most-once guard for forwarding leads.

A Redis list holds the last SEEN_LEADS_LIMIT forwarded lead ids, oldest first.
Eviction is FIFO: marking an id that is already in the window does not move
it, and an id pushed out of the window counts as new again.
"""
import logging

from leadbridge.config import SEEN_LEADS_KEY, SEEN_LEADS_LIMIT

logger = logging.getLogger('services.seen_leads')


class SeenLeadTracker:

    def __init__(self, redis_client, key=SEEN_LEADS_KEY, limit=SEEN_LEADS_LIMIT):
        self.redis = redis_client
        self.key = key
        self.limit = limit

    def seen_ids(self):
        """Tracked ids, oldest first."""
        return [str(v) for v in self.redis.lrange(self.key, 0, -1)]

    def has_seen(self, lead_id) -> bool:
        return str(lead_id) in self.seen_ids()

    def mark_seen(self, lead_id):
        if self.has_seen(lead_id):
            return
        pipe = self.redis.pipeline()
        pipe.rpush(self.key, str(lead_id))
        pipe.ltrim(self.key, -self.limit, -1)
        pipe.execute()
        logger.debug("Marked lead %s as seen", lead_id)

    def clear(self):
        self.redis.delete(self.key)
