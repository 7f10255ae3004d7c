"""Pydantic models for the Teams message card payload."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


class MessageFact(BaseModel):
    """A single name/value line inside a card section."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str


class MessageSection(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str | None = Field(default=None, serialization_alias="activityTitle")
    facts: list[MessageFact] = Field(default_factory=list)


class MessageCard(BaseModel):
    """Notification card posted to the webhook."""

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    text: str | None = None
    color: str | None = Field(default=None, serialization_alias="themeColor")
    sections: list[MessageSection] | None = None


@dataclass(frozen=True)
class CardSerialization:
    """Serializer settings handed to :func:`serialize_card`."""

    exclude_none: bool = True
    encoding: str = "utf-8"


DEFAULT_SERIALIZATION = CardSerialization()


def serialize_card(card: MessageCard, settings: CardSerialization = DEFAULT_SERIALIZATION) -> bytes:
    payload = card.model_dump_json(by_alias=True, exclude_none=settings.exclude_none)
    return payload.encode(settings.encoding)
