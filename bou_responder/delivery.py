"""Outbound reply delivery to the slash-command callback URL."""

import httpx

from bou_responder.datastructures import ReplyMessage
from bou_responder.logger import logger
from bou_responder.schemas import EphemeralReply

REPLY_HEADERS = {"Content-type": "application/json"}


class ReplyDelivery:
    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self.http_client = http_client

    async def post(self, callback_url: str, message: ReplyMessage) -> None:
        """Sends the reply once. The response is not inspected and nothing is retried."""
        payload = EphemeralReply.from_message(message)
        try:
            await self.http_client.post(
                callback_url,
                content=payload.model_dump_json(),
                headers=REPLY_HEADERS,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"The reply could not be delivered: {e!r}")
            return

        logger.info("Reply delivered.")
