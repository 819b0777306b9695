"""
Realtime change feed.

Services publish INSERT / UPDATE / DELETE events for the tables dashboards
watch (applications, job_applications, jobs, notifications). WebSocket
handlers subscribe per company and forward whatever arrives.

Delivery notes:
- publish() may be called from worker threads (sync route handlers), so each
  subscriber keeps the loop it was created on and events are handed over with
  call_soon_threadsafe.
- Order is FIFO per subscriber. Nothing is de-duplicated or replayed.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from udyoga_setu.utils.timeutils import now_iso

logger = logging.getLogger(__name__)


@dataclass
class Subscription:
    tables: frozenset
    company_id: Optional[str]
    loop: asyncio.AbstractEventLoop
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)

    def matches(self, table: str, company_id: Optional[str]) -> bool:
        if table not in self.tables:
            return False
        # company-less subscriptions see everything (admin views)
        return self.company_id is None or self.company_id == company_id


class ChangeFeed:
    """In-process publish/subscribe broker for table change events."""

    def __init__(self):
        self._subscriptions: List[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, tables: Iterable[str], company_id: Optional[str] = None) -> Subscription:
        """Must be called from inside a running event loop."""
        sub = Subscription(
            tables=frozenset(tables),
            company_id=company_id,
            loop=asyncio.get_running_loop(),
        )
        with self._lock:
            self._subscriptions.append(sub)
        logger.debug("Subscribed to %s (company=%s)", sorted(sub.tables), company_id)
        return sub

    def unsubscribe(self, sub: Subscription):
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, table: str, event_type: str, new: dict = None, old: dict = None,
                company_id: Optional[str] = None) -> int:
        """
        Fan an event out to matching subscribers.

        Returns:
            Number of subscribers the event was queued for
        """
        event = {
            "type": "change",
            "table": table,
            "event": event_type,
            "new": new,
            "old": old,
            "company_id": company_id,
            "commit_timestamp": now_iso(),
        }
        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(table, company_id)]

        delivered = 0
        for sub in targets:
            try:
                sub.loop.call_soon_threadsafe(sub.queue.put_nowait, event)
                delivered += 1
            except RuntimeError:
                # loop already closed; the handler's finally block will unsubscribe
                logger.debug("Dropping event for closed subscriber loop")
        return delivered


# Singleton instance
_feed: ChangeFeed = None


def get_change_feed() -> ChangeFeed:
    global _feed
    if _feed is None:
        _feed = ChangeFeed()
    return _feed
