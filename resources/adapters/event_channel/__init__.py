"""Durable topic-routed event channel over Redis Streams."""

from resources.adapters.event_channel.adapter import (
    ChannelMessage,
    ConsumeResult,
    EventChannel,
    EventChannelDependencyError,
    EventChannelError,
    EventChannelHealth,
    MessageHandler,
    Subscription,
)
from resources.adapters.event_channel.component import MANIFEST, RESOURCE_COMPONENT_ID
from resources.adapters.event_channel.config import (
    EventChannelSettings,
    resolve_event_channel_settings,
)
from resources.adapters.event_channel.redis_event_channel import (
    RedisStreamEventChannel,
)
from resources.adapters.event_channel.routing import routing_key_matches

__all__ = [
    "MANIFEST",
    "RESOURCE_COMPONENT_ID",
    "ChannelMessage",
    "ConsumeResult",
    "EventChannel",
    "EventChannelDependencyError",
    "EventChannelError",
    "EventChannelHealth",
    "EventChannelSettings",
    "MessageHandler",
    "RedisStreamEventChannel",
    "Subscription",
    "resolve_event_channel_settings",
    "routing_key_matches",
]
