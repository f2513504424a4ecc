"""Answers room status slash commands received over a Beebotte MQTT channel."""

from bou_responder.bridge import EventBridge
from bou_responder.composer import compose
from bou_responder.config import load_config
from bou_responder.datastructures import (
    BridgeState,
    BrokerSettings,
    ConnectionConfig,
    Count,
    InboundEvent,
    OccupancyResult,
    QueryFailed,
    ReplyMessage,
)
from bou_responder.delivery import ReplyDelivery
from bou_responder.occupancy import OccupancyClient, fetch_count

__all__ = [
    "EventBridge",
    "BridgeState",
    "BrokerSettings",
    "ConnectionConfig",
    "InboundEvent",
    "OccupancyResult",
    "Count",
    "QueryFailed",
    "ReplyMessage",
    "OccupancyClient",
    "ReplyDelivery",
    "compose",
    "fetch_count",
    "load_config",
]
