"""Redis Pub/Sub broadcast channel: one listener task per joined topic."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from chat_sync.application.ports.channel import OnChannelEvent, OnChannelStatus
from chat_sync.config import Settings
from chat_sync.domain.value_objects.enums import ChannelStatus
from chat_sync.infrastructure.bus.serializer import deserialize_event, serialize_event

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Subscription:
    topic: str
    on_event: OnChannelEvent
    on_status: OnChannelStatus
    status: ChannelStatus | None = None
    ready: asyncio.Event = field(default_factory=asyncio.Event)
    task: asyncio.Task[None] | None = None


class RedisBroadcastChannel:
    """Implements application.ports.channel.BroadcastChannel."""

    def __init__(self, redis: aioredis.Redis, *, reconnect_delay: float = 5.0) -> None:
        self._redis = redis
        self._reconnect_delay = reconnect_delay
        self._subs: dict[str, _Subscription] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> RedisBroadcastChannel:
        redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
        return cls(redis, reconnect_delay=settings.BROADCAST_RECONNECT_SECONDS)

    async def join(
        self,
        topic: str,
        on_event: OnChannelEvent,
        on_status: OnChannelStatus,
    ) -> None:
        """Start listening on ``topic``. Returns after the first subscribe attempt."""
        if topic in self._subs:
            await self.leave(topic)
        sub = _Subscription(topic=topic, on_event=on_event, on_status=on_status)
        sub.task = asyncio.create_task(self._listen(sub), name=f"broadcast-{topic}")
        self._subs[topic] = sub
        await sub.ready.wait()
        logger.info("Joined broadcast topic=%s status=%s", topic, sub.status)

    async def send(self, topic: str, event: str, payload: dict[str, Any]) -> None:
        raw = serialize_event(event, payload)
        await self._redis.publish(topic, raw)

    async def leave(self, topic: str) -> None:
        sub = self._subs.pop(topic, None)
        if sub is None:
            return
        if sub.task:
            sub.task.cancel()
            try:
                await sub.task
            except asyncio.CancelledError:
                pass
        self._set_status(sub, ChannelStatus.CLOSED)
        logger.info("Left broadcast topic=%s", topic)

    async def aclose(self) -> None:
        for topic in list(self._subs):
            await self.leave(topic)
        await self._redis.aclose()

    async def _listen(self, sub: _Subscription) -> None:
        while True:
            pubsub = self._redis.pubsub()
            try:
                await pubsub.subscribe(sub.topic)
                self._set_status(sub, ChannelStatus.SUBSCRIBED)
                sub.ready.set()
                async for message in pubsub.listen():
                    if message["type"] != "message":
                        continue
                    await self._dispatch(sub, message["data"])
                # Server closed the connection without an error
                self._set_status(sub, ChannelStatus.CHANNEL_ERROR)
            except asyncio.CancelledError:
                raise
            except RedisTimeoutError:
                logger.warning("Broadcast topic=%s timed out", sub.topic)
                self._set_status(sub, ChannelStatus.TIMED_OUT)
            except RedisConnectionError as exc:
                logger.warning("Broadcast topic=%s lost connection: %s", sub.topic, exc)
                self._set_status(sub, ChannelStatus.CHANNEL_ERROR)
            except Exception:
                logger.exception("Broadcast listener error on topic=%s", sub.topic)
                self._set_status(sub, ChannelStatus.CHANNEL_ERROR)
            finally:
                sub.ready.set()
                await self._release(pubsub, sub.topic)

            logger.info("Reconnecting to topic=%s in %.1fs", sub.topic, self._reconnect_delay)
            await asyncio.sleep(self._reconnect_delay)

    async def _dispatch(self, sub: _Subscription, raw: str | bytes) -> None:
        try:
            event, data = deserialize_event(raw)
        except ValueError:
            logger.warning("Dropping malformed broadcast on topic=%s", sub.topic)
            return
        try:
            await sub.on_event(event, data)
        except Exception:
            logger.exception("Error handling %s event on topic=%s", event, sub.topic)

    @staticmethod
    def _set_status(sub: _Subscription, status: ChannelStatus) -> None:
        if sub.status == status:
            return
        sub.status = status
        try:
            sub.on_status(status)
        except Exception:
            logger.exception("Channel status callback failed for topic=%s", sub.topic)

    @staticmethod
    async def _release(pubsub: Any, topic: str) -> None:
        try:
            await pubsub.unsubscribe(topic)
        except (RedisConnectionError, RedisTimeoutError):
            logger.debug("Unsubscribe from topic=%s skipped, connection is gone", topic)
        await pubsub.aclose()
