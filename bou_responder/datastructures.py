from dataclasses import dataclass, field
from enum import StrEnum


@dataclass(frozen=True)
class ConnectionConfig:
    broker_token: str
    channel: str
    resource: str
    status_endpoint_base: str

    @property
    def topic(self) -> str:
        return f"{self.channel}/{self.resource}"


@dataclass(frozen=True)
class BrokerSettings:
    hostname: str = "mqtt.beebotte.com"
    port: int = 8883
    qos: int = 1
    ca_file: str | None = None
    username_prefix: str = "token:"

    def username(self, token: str) -> str:
        return f"{self.username_prefix}{token}"


@dataclass(frozen=True)
class SubscriptionAck:
    topic: str
    granted: tuple[int, ...]


@dataclass(frozen=True)
class InboundEvent:
    topic: str
    callback_url: str


@dataclass(frozen=True)
class Count:
    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError(f"The occupancy count must not be negative, got {self.value}.")


@dataclass(frozen=True)
class QueryFailed:
    reason: str = field(default="", compare=False)


OccupancyResult = Count | QueryFailed


@dataclass(frozen=True)
class ReplyMessage:
    headline: str
    footer: str


class BridgeState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    SUBSCRIBING = "subscribing"
    LISTENING = "listening"
    STOPPED = "stopped"
    FAILED = "failed"
