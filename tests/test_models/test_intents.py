"""
Tests para intents, respuestas fijas y modelos de Dialogflow.
"""

import pytest

from campusbot.models.dialogflow import IntentRequest, ReplyResponse, WebhookRequest
from campusbot.models.intents import CANNED_REPLIES, CONTACT_CHIPS, IntentKind


class TestIntentKind:
    """Tests para IntentKind.from_display_name."""

    @pytest.mark.parametrize("display_name, expected", [
        ("Get Fees Info", IntentKind.FEES_INFO),
        ("Get Admission Process", IntentKind.ADMISSION_PROCESS),
        ("Get College Contact", IntentKind.COLLEGE_CONTACT),
        ("Default Fallback Intent", IntentKind.FALLBACK),
    ])
    def test_exact_match(self, display_name, expected):
        assert IntentKind.from_display_name(display_name) == expected

    @pytest.mark.parametrize("display_name", [
        "get fees info",
        "Get Fees Info ",
        "Default Welcome Intent",
        "",
        None,
        "__unhandled__",
    ])
    def test_anything_else_is_unhandled(self, display_name):
        """Test coincidencia sensible a mayúsculas y sin normalización."""
        assert IntentKind.from_display_name(display_name) == IntentKind.UNHANDLED

    def test_every_recognized_intent_has_canned_reply(self):
        recognized = {
            IntentKind.FEES_INFO,
            IntentKind.ADMISSION_PROCESS,
            IntentKind.COLLEGE_CONTACT,
        }

        assert set(CANNED_REPLIES) == recognized

    def test_fee_reply_mentions_amount(self):
        assert "₹95,000" in CANNED_REPLIES[IntentKind.FEES_INFO].text


class TestWebhookRequest:
    """Tests para el request entrante de Dialogflow."""

    def test_extracts_intent_and_query_text(self, make_dialogflow_body):

        # Arrange
        body = make_dialogflow_body("Get Fees Info", "what is the fee")

        # Act
        request = WebhookRequest.model_validate(body).to_intent_request()

        # Assert
        assert request == IntentRequest(intent="Get Fees Info", user_message="what is the fee")

    @pytest.mark.parametrize("body", [
        {},
        {"queryResult": {}},
        {"queryResult": {"intent": {}}},
        {"queryResult": {"queryText": None, "intent": {"displayName": None}}},
    ])
    def test_missing_fields_default_to_empty(self, body):
        request = WebhookRequest.model_validate(body).to_intent_request()

        assert request.intent == ""
        assert request.user_message == ""


class TestReplyResponse:
    """Tests para la serialización de ReplyResponse."""

    def test_plain_wire_format(self):
        assert ReplyResponse.plain("hello").to_wire() == {"fulfillmentText": "hello"}

    def test_segments_with_chips_wire_format(self):
        """Test forma exacta de fulfillmentMessages con chips."""

        # Act
        wire = ReplyResponse.with_segments(["hello"], chips=CONTACT_CHIPS).to_wire()

        # Assert
        assert wire == {
            "fulfillmentMessages": [
                {"text": {"text": ["hello"]}},
                {
                    "payload": {
                        "richContent": [[
                            {
                                "type": "chips",
                                "options": [
                                    {"text": "📞 Call College"},
                                    {"text": "🌐 Visit Website"},
                                    {"text": "📍 View Location"}
                                ]
                            }
                        ]]
                    }
                }
            ]
        }

    def test_segments_without_chips(self):
        wire = ReplyResponse.with_segments(["a", "b"]).to_wire()

        assert wire == {"fulfillmentMessages": [{"text": {"text": ["a"]}}, {"text": {"text": ["b"]}}]}

    def test_texts_and_chips_accessors(self):
        reply = ReplyResponse.with_segments(["a", "b"], chips=["x", "y"])

        assert reply.texts == ["a", "b"]
        assert reply.chips == ["x", "y"]
        assert ReplyResponse.plain("c").texts == ["c"]
        assert ReplyResponse.plain("c").chips == []
