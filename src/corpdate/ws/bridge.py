"""Bridges Redis pub/sub to WebSocket clients.

Pattern-subscribes to the per-user channels (``ws:user:{id}``) that
notifications are published on and forwards each event to that user's open
sockets.
"""

import asyncio
import json
from typing import Any

import redis.asyncio as aioredis
import structlog
from redis.exceptions import ConnectionError as RedisConnectionError

from corpdate.ws.manager import ConnectionManager, manager

logger = structlog.get_logger()

USER_CHANNEL_PATTERN = "ws:user:*"


class PubSubBridge:
    """Subscribes to Redis pub/sub and pushes messages to WebSocket clients."""

    def __init__(
        self,
        redis_client: aioredis.Redis,
        connections: ConnectionManager = manager,
        reconnect_delay: float = 1.0,
    ) -> None:
        self.redis = redis_client
        self.connections = connections
        self.reconnect_delay = reconnect_delay
        self._running = False

    async def dispatch(self, message: dict[str, Any]) -> int:
        """Route one pub/sub message. Returns the number of sockets reached."""
        if message.get("type") != "pmessage":
            return 0

        channel = message.get("channel", "")
        if isinstance(channel, bytes):
            channel = channel.decode()

        try:
            user_id = int(channel.rsplit(":", 1)[-1])
        except ValueError:
            logger.warning("pubsub_invalid_user_id", channel=channel)
            return 0

        try:
            data = message.get("data", b"")
            if isinstance(data, bytes):
                data = data.decode()
            payload = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("pubsub_invalid_message", channel=channel)
            return 0

        sent = await self.connections.send_to_user(user_id, {
            "type": payload.get("event", "notification"),
            "payload": payload.get("data", payload),
        })
        if sent > 0:
            logger.debug("user_event_sent", user_id=user_id, recipients=sent)
        return sent

    async def start(self) -> None:
        """Listen until stopped, resubscribing after Redis connection loss."""
        self._running = True
        try:
            while self._running:
                try:
                    await self._listen()
                except RedisConnectionError:
                    if not self._running:
                        break
                    logger.warning(
                        "pubsub_bridge_disconnected",
                        retry_in_seconds=self.reconnect_delay,
                        exc_info=True,
                    )
                    await asyncio.sleep(self.reconnect_delay)
        except asyncio.CancelledError:
            pass
        logger.info("pubsub_bridge_stopped")

    async def _listen(self) -> None:
        pubsub = self.redis.pubsub()
        try:
            await pubsub.psubscribe(USER_CHANNEL_PATTERN)
            logger.info("pubsub_bridge_started", patterns=[USER_CHANNEL_PATTERN])
            while self._running:
                message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
                if message is None:
                    continue
                await self.dispatch(message)
        finally:
            try:
                await pubsub.punsubscribe()
            except RedisConnectionError:
                logger.debug("pubsub_unsubscribe_skipped", reason="connection lost")
            await pubsub.aclose()

    async def stop(self) -> None:
        """Signal the bridge to stop."""
        self._running = False
