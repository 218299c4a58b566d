"""
backend/washbay/services/events.py

Event emitter: pushes events to a Redis queue drained by the notification
consumer (email/SMS delivery lives there, not here).

Queue:
- events:p2p: booking_created, booking_cancelled, waitlist_joined
"""

import json
import time
import logging

from redis.exceptions import RedisError

from ..redis_client import redis_client

logger = logging.getLogger(__name__)

P2P_QUEUE = "events:p2p"


def emit_event(event_type: str, payload: dict) -> None:
    """
    Emit a p2p event (instant delivery).

    Delivery problems are logged, never raised: a booking or waitlist
    entry is already committed by the time we get here.
    """
    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        redis_client.rpush(P2P_QUEUE, json.dumps(event, default=str))
        logger.info(f"Event emitted: {event_type} → {P2P_QUEUE}")
    except RedisError as e:
        logger.error(f"Failed to emit event {event_type}: {e}")
