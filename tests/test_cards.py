from __future__ import annotations

import json

from teamsink.cards import CardSerialization, MessageCard, MessageFact, MessageSection, serialize_card


def test_serialize_card_omits_missing_sections() -> None:
    card = MessageCard(title="Alerts", text="Disk low", color="f0ad4e")

    payload = json.loads(serialize_card(card))

    assert payload == {"title": "Alerts", "text": "Disk low", "themeColor": "f0ad4e"}
    assert "sections" not in payload


def test_serialize_card_omits_missing_title() -> None:
    payload = json.loads(serialize_card(MessageCard(text="Disk low", color="777777")))
    assert "title" not in payload
    assert payload["themeColor"] == "777777"


def test_serialize_card_uses_wire_names_for_sections() -> None:
    card = MessageCard(
        title="Alerts",
        text="Boom",
        color="d9534f",
        sections=[
            MessageSection(
                title="Properties",
                facts=[MessageFact(name="Level", value="Error"), MessageFact(name="OrderId", value='"A1"')],
            )
        ],
    )

    payload = json.loads(serialize_card(card))

    assert payload["sections"] == [
        {
            "activityTitle": "Properties",
            "facts": [{"name": "Level", "value": "Error"}, {"name": "OrderId", "value": '"A1"'}],
        }
    ]


def test_serialize_card_is_utf8() -> None:
    body = serialize_card(MessageCard(text="Grüße aus Köln"))
    assert json.loads(body.decode("utf-8"))["text"] == "Grüße aus Köln"


def test_serialization_settings_are_explicit() -> None:
    card = MessageCard(text="Disk low")
    payload = json.loads(serialize_card(card, CardSerialization(exclude_none=False)))
    assert payload["sections"] is None
    assert payload["title"] is None
