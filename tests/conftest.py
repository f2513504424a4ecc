import json
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import anyio
import httpx
import pytest
import yaml

from bou_responder.datastructures import ConnectionConfig
from bou_responder.logger import setup_logger

STATUS_BASE = "https://status.example.test"
CALLBACK_URL = "https://hooks.slack.test/commands/T000/1"


@pytest.fixture(autouse=True)
def reset_logger() -> Iterator[None]:
    yield
    setup_logger()


@pytest.fixture
def connection_config() -> ConnectionConfig:
    return ConnectionConfig(
        broker_token="token_abc",
        channel="boushitsu",
        resource="status_request",
        status_endpoint_base=STATUS_BASE,
    )


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[Any], Path]:
    def _write(document: Any) -> Path:
        path = tmp_path / "config.yml"
        path.write_text(yaml.safe_dump(document), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def valid_options() -> dict[str, str]:
    return {
        "beebotteChannelToken": "token_abc",
        "beebotteChannel": "boushitsu",
        "beebotteResource": "status_request",
        "endpoint": STATUS_BASE,
    }


@dataclass
class FakeMessage:
    topic: str
    payload: Any
    mid: int = 0


def slash_command_message(callback_url: str = CALLBACK_URL, mid: int = 0) -> FakeMessage:
    payload = json.dumps({"data": {"response_url": callback_url, "user_name": "alice"}})
    return FakeMessage(topic="boushitsu/status_request", payload=payload.encode(), mid=mid)


class FakeMqttClient:
    """Stands in for aiomqtt.Client: an async context manager with a message stream."""

    def __init__(
        self,
        messages: Sequence[FakeMessage] = (),
        granted: Any = (1,),
        connect_error: Exception | None = None,
        subscribe_error: Exception | None = None,
        stream_error: Exception | None = None,
        hold_open: bool = False,
    ) -> None:
        self._messages = list(messages)
        self.connect_error = connect_error
        self.stream_error = stream_error
        self.hold_open = hold_open
        self.subscribe = AsyncMock(return_value=granted, side_effect=subscribe_error)
        self.entered = False
        self.exited = False

    async def __aenter__(self) -> "FakeMqttClient":
        if self.connect_error is not None:
            raise self.connect_error
        self.entered = True
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.exited = True

    @property
    def messages(self) -> Any:
        return self._iterate()

    async def _iterate(self) -> Any:
        for message in self._messages:
            yield message

        if self.stream_error is not None:
            raise self.stream_error

        if self.hold_open:
            await anyio.sleep_forever()


class RecordingEndpoints:
    """An httpx MockTransport handler serving the status endpoint and the webhook."""

    def __init__(self, status_body: Any = None, status_code: int = 200) -> None:
        self.status_body = {"data": []} if status_body is None else status_body
        self.status_code = status_code
        self.gets: list[httpx.Request] = []
        self.posts: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            self.gets.append(request)
            return await self.on_status(request)

        self.posts.append(request)
        return httpx.Response(200, text="ok")

    async def on_status(self, request: httpx.Request) -> httpx.Response:
        if isinstance(self.status_body, bytes):
            return httpx.Response(self.status_code, content=self.status_body)
        return httpx.Response(self.status_code, json=self.status_body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def endpoints() -> RecordingEndpoints:
    return RecordingEndpoints()
