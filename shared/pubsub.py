import logging
from typing import Optional

import redis

from .events import Event

logger = logging.getLogger(__name__)

GLOBAL_CHANNEL = "global:announcements"


class EventPublisher:
    """
    Publishes tournament events to redis channels. Publishing is best-effort:
    a redis failure is logged and dropped so it can never fail the mutation
    that produced the event.
    """

    def __init__(self, redis_client: Optional[redis.Redis] = None):
        self.redis = redis_client

    @classmethod
    def from_url(cls, redis_url: str, timeout: float = 5) -> "EventPublisher":
        client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=timeout,
            socket_timeout=timeout
        )
        return cls(client)

    @staticmethod
    def tournament_channel(tournament_id: str) -> str:
        return f"tournament:{tournament_id}:events"

    def publish_tournament_event(self, event: Event) -> bool:
        if self.redis is None:
            return False

        payload = event.to_json()
        try:
            self.redis.publish(self.tournament_channel(event.tournament_id), payload)
            self.redis.publish(GLOBAL_CHANNEL, payload)
            return True
        except redis.RedisError as e:
            logger.warning(f"Failed to publish {event.to_dict()['type']} for {event.tournament_id}: {e}")
            return False
