"""Broker subscription lifecycle and the per-event reply pipeline."""

import itertools
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

import aiomqtt
import anyio
import httpx
from pydantic import ValidationError

from bou_responder.composer import compose
from bou_responder.datastructures import (
    BridgeState,
    BrokerSettings,
    ConnectionConfig,
    InboundEvent,
    SubscriptionAck,
)
from bou_responder.delivery import ReplyDelivery
from bou_responder.exceptions import (
    AcknowledgementError,
    BouResponderException,
    BrokerConnectionError,
    BrokerError,
    MalformedEventError,
    SubscriptionError,
)
from bou_responder.logger import logger
from bou_responder.occupancy import OccupancyClient
from bou_responder.schemas import InboundEventPayload

# SUBACK return codes at or above this value mean the subscription was refused.
SUBACK_FAILURE = 0x80


class EventBridge:
    """Owns the broker connection and answers every inbound status request.

    The bridge walks DISCONNECTED -> CONNECTING -> SUBSCRIBING -> LISTENING.
    Any broker problem moves it to FAILED and is raised from ``run`` as a
    BrokerError; ``stop`` moves it to STOPPED and makes ``run`` return.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        broker_settings: BrokerSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self.broker_settings = broker_settings or BrokerSettings()
        self.state = BridgeState.DISCONNECTED

        self._http_client = http_client
        self._cancel_scope: anyio.CancelScope | None = None
        self._stop_requested = False
        self._in_flight = 0
        self._sequence = itertools.count(1)

    async def run(self) -> None:
        if self.state is not BridgeState.DISCONNECTED:
            raise BouResponderException(f"The event bridge cannot run from state '{self.state}'.")

        with anyio.CancelScope() as scope:
            self._cancel_scope = scope
            if self._stop_requested:
                scope.cancel()

            try:
                async with self._open_http_client() as http_client:
                    await self._serve(OccupancyClient(http_client), ReplyDelivery(http_client))
            except BrokerError:
                self._set_state(BridgeState.FAILED)
                raise

        self._cancel_scope = None
        self._set_state(BridgeState.STOPPED)

    def stop(self) -> None:
        """Cancels in-flight events and closes the broker connection."""
        logger.info("Stopping the event bridge")
        self._stop_requested = True
        if self._cancel_scope is not None:
            self._cancel_scope.cancel()

    def info(self) -> dict[str, Any]:
        return {
            "state": str(self.state),
            "topic": self.config.topic,
            "in_flight": self._in_flight,
        }

    def alive(self) -> bool:
        return self.state not in (BridgeState.FAILED, BridgeState.STOPPED)

    def ready(self) -> bool:
        return self.state is BridgeState.LISTENING

    @asynccontextmanager
    async def _open_http_client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return

        async with httpx.AsyncClient() as http_client:
            yield http_client

    async def _serve(self, occupancy: OccupancyClient, delivery: ReplyDelivery) -> None:
        self._set_state(BridgeState.CONNECTING)
        client = self._create_client()

        try:
            async with client:
                self._set_state(BridgeState.SUBSCRIBING)
                acknowledgement = await self._subscribe(client)
                self._on_subscribed(acknowledgement)

                self._set_state(BridgeState.LISTENING)
                await self._listen(client, occupancy, delivery)
        except aiomqtt.MqttError as e:
            raise BrokerConnectionError(f"Error on connect: {e}") from e

    def _create_client(self) -> aiomqtt.Client:
        settings = self.broker_settings
        logger.info(f"Connecting to mqtts://{settings.hostname}:{settings.port}")
        try:
            return aiomqtt.Client(
                hostname=settings.hostname,
                port=settings.port,
                username=settings.username(self.config.broker_token),
                password="",
                tls_params=aiomqtt.TLSParameters(ca_certs=settings.ca_file),
                logger=logger.getChild("mqtt"),
            )
        except (OSError, ValueError) as e:
            raise BrokerConnectionError(f"The broker client could not be configured: {e}") from e

    async def _subscribe(self, client: aiomqtt.Client) -> SubscriptionAck:
        topic = self.config.topic
        try:
            granted = await client.subscribe(topic, qos=self.broker_settings.qos)
        except aiomqtt.MqttError as e:
            raise SubscriptionError(f"Error on subscription to '{topic}': {e}") from e

        return parse_acknowledgement(topic, granted)

    def _on_subscribed(self, acknowledgement: SubscriptionAck) -> None:
        segments = acknowledgement.topic.split("/")
        if len(segments) != 2:
            logger.warning(f"Subscribed to the unexpected topic '{acknowledgement.topic}'")
            return

        channel, resource = segments
        logger.info(
            "Subscribed",
            extra={"channel": channel, "resource": resource, "qos": acknowledgement.granted[0]},
        )

    async def _listen(
        self, client: aiomqtt.Client, occupancy: OccupancyClient, delivery: ReplyDelivery
    ) -> None:
        connection_error: aiomqtt.MqttError | None = None

        async with anyio.create_task_group() as tg:
            try:
                async for message in client.messages:
                    tg.start_soon(self._handle_message, message, occupancy, delivery)
            except aiomqtt.MqttError as e:
                connection_error = e
                tg.cancel_scope.cancel()

        if connection_error is not None:
            raise BrokerConnectionError(
                f"The broker connection was lost: {connection_error}"
            ) from connection_error

    async def _handle_message(
        self, message: aiomqtt.Message, occupancy: OccupancyClient, delivery: ReplyDelivery
    ) -> None:
        message_id = message.mid or next(self._sequence)
        with logger.contextualize(topic=str(message.topic), message_id=message_id):
            self._in_flight += 1
            try:
                event = parse_event(message)
                result = await occupancy.fetch_count(self.config.status_endpoint_base)
                await delivery.post(event.callback_url, compose(result))
            except MalformedEventError as e:
                logger.error(f"The message will be dropped: {e}")
            except Exception:
                logger.exception("Unhandled exception on message")
            finally:
                self._in_flight -= 1

    def _set_state(self, state: BridgeState) -> None:
        logger.debug(f"Event bridge state {self.state} -> {state}")
        self.state = state


def parse_acknowledgement(topic: str, granted: Sequence[Any] | None) -> SubscriptionAck:
    """Validates a SUBACK. Entries may be plain QoS ints or MQTT reason codes."""
    if granted is None:
        raise AcknowledgementError('"granted" is undefined. Failed to subscribe.')

    if not isinstance(granted, list | tuple) or len(granted) == 0:
        raise AcknowledgementError(
            f'"granted" is not a sequence or it has no element. "granted": {granted!r}'
        )

    codes: list[int] = []
    for entry in granted:
        code = getattr(entry, "value", entry)
        if isinstance(code, bool) or not isinstance(code, int):
            raise AcknowledgementError(f"Malformed subscription acknowledgement entry {entry!r}")

        if code >= SUBACK_FAILURE:
            raise AcknowledgementError(
                f"The broker refused the subscription to '{topic}' (code {code:#x})."
            )
        codes.append(code)

    return SubscriptionAck(topic=topic, granted=tuple(codes))


def parse_event(message: aiomqtt.Message) -> InboundEvent:
    """Extracts the reply destination from a broker message body."""
    payload = message.payload
    if not isinstance(payload, bytes | bytearray | str):
        raise MalformedEventError(f"Unsupported payload type {type(payload).__name__}")

    try:
        body = InboundEventPayload.model_validate_json(payload)
    except ValidationError as e:
        raise MalformedEventError(
            f"The payload has no usable 'data.response_url' field ({e.error_count()} errors)"
        ) from e

    return InboundEvent(topic=str(message.topic), callback_url=body.data.response_url)
