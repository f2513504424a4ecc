"""Occupancy count lookup against the room status REST endpoint."""

import httpx
from pydantic import ValidationError

from bou_responder.datastructures import Count, OccupancyResult, QueryFailed
from bou_responder.logger import logger
from bou_responder.schemas import UsersInRoomResponse

USERS_IN_ROOM_PATH = "/v1/users_in_room"


class OccupancyClient:
    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self.http_client = http_client

    async def fetch_count(self, base_url: str) -> OccupancyResult:
        """Performs a single status request and interprets its body.

        Every failure is logged and returned as QueryFailed, never raised.
        """
        url = base_url.rstrip("/") + USERS_IN_ROOM_PATH
        try:
            response = await self.http_client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Failed to get count from {url}: {e!r}")
            return QueryFailed(reason=f"request failed: {e!r}")

        try:
            body = UsersInRoomResponse.model_validate_json(response.content)
        except ValidationError:
            logger.error(
                f"Unexpected response with status {response.status_code}",
                extra={"body": response.text},
            )
            return QueryFailed(reason=f"unexpected response with status {response.status_code}")

        logger.debug(f"The status endpoint reported {len(body.data)} users in the room")
        return Count(len(body.data))


async def fetch_count(base_url: str, client: httpx.AsyncClient | None = None) -> OccupancyResult:
    """One-shot variant that owns a throwaway HTTP client when none is given."""
    if client is not None:
        return await OccupancyClient(client).fetch_count(base_url)

    async with httpx.AsyncClient() as http_client:
        return await OccupancyClient(http_client).fetch_count(base_url)
