"""Validated shapes of every JSON/YAML document crossing the process boundary."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from bou_responder.datastructures import ReplyMessage


class BouOptions(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)

    # The token is checked separately so an empty credential gets its own error.
    beebotte_channel_token: str = Field(alias="beebotteChannelToken")
    beebotte_channel: str = Field(alias="beebotteChannel", min_length=1)
    beebotte_resource: str = Field(alias="beebotteResource", min_length=1)
    endpoint: str = Field(min_length=1)


class ConfigDocument(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)

    bou_options: BouOptions = Field(alias="bouOptions")


class SlashCommandData(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)

    response_url: str = Field(min_length=1)


class InboundEventPayload(BaseModel):
    """Body published to the broker by the slash-command webhook."""

    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)

    data: SlashCommandData


class UsersInRoomResponse(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)

    data: list[Any]


class MarkdownText(BaseModel):
    type: Literal["mrkdwn"] = "mrkdwn"
    text: str


class SectionBlock(BaseModel):
    type: Literal["section"] = "section"
    text: MarkdownText


class ContextBlock(BaseModel):
    type: Literal["context"] = "context"
    elements: list[MarkdownText]


class EphemeralReply(BaseModel):
    """A Slack slash-command response only visible to the requester."""

    text: str = "from boushitsu"
    response_type: Literal["ephemeral"] = "ephemeral"
    blocks: list[SectionBlock | ContextBlock]

    @classmethod
    def from_message(cls, message: ReplyMessage) -> "EphemeralReply":
        return cls(
            blocks=[
                SectionBlock(text=MarkdownText(text=message.headline)),
                ContextBlock(elements=[MarkdownText(text=message.footer)]),
            ]
        )
