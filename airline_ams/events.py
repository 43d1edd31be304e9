import asyncio
import contextlib
import json
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError
from fastapi import WebSocket
from loguru import logger


class EventPublisher:
    """Publishes post-commit events to a Redis channel. A publisher without a client is a no-op."""

    def __init__(self, redis_client: Optional[redis.Redis] = None, channel: str = "seat_events"):
        self.redis_client = redis_client
        self.channel = channel

    @classmethod
    def from_url(cls, url: Optional[str], channel: str = "seat_events") -> "EventPublisher":
        if not url:
            return cls(None, channel)
        return cls(redis.from_url(url, encoding="utf-8", decode_responses=True), channel)

    async def publish(self, event: dict) -> None:
        if self.redis_client is None:
            return
        # the transaction is already committed; a lost event must not surface as a failure
        try:
            await self.redis_client.publish(self.channel, json.dumps(event, default=str))
        except RedisError as e:
            logger.warning(f"📡 [EVENTS] Failed to publish {event.get('type')}: {e}")

    async def close(self) -> None:
        if self.redis_client is not None:
            await self.redis_client.aclose()


class WSManager:
    def __init__(self):
        self.connections = set()

    async def connect(self, ws: WebSocket):
        await ws.accept()
        self.connections.add(ws)

    def disconnect(self, ws: WebSocket):
        self.connections.discard(ws)

    async def broadcast(self, message: dict):
        dead = []
        for ws in list(self.connections):
            try:
                await ws.send_json(message)
            except Exception:
                dead.append(ws)
        for d in dead:
            self.disconnect(d)


async def forward_events(publisher: EventPublisher, ws_manager: WSManager,
                         retry_delay: float = 1.0, max_retry_delay: float = 30.0) -> None:
    """Relay channel messages to connected websockets until cancelled; reconnects with backoff."""
    delay = retry_delay
    while True:
        pub = publisher.redis_client.pubsub()
        try:
            await pub.subscribe(publisher.channel)
            delay = retry_delay
            async for msg in pub.listen():
                if msg is None or msg.get("type") != "message":
                    continue
                try:
                    data = json.loads(msg["data"])
                except json.JSONDecodeError:
                    logger.warning(f"📡 [EVENTS] Dropping malformed message: {msg['data']!r}")
                    continue
                await ws_manager.broadcast(data)
        except RedisError as e:
            logger.warning(f"📡 [EVENTS] Subscription to {publisher.channel} lost: {e}; retrying in {delay:.1f}s")
        finally:
            with contextlib.suppress(RedisError):
                await pub.aclose()
        await asyncio.sleep(delay)
        delay = min(delay * 2, max_retry_delay)
