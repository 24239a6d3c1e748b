import pytest

from social_bot.services.normalizer import (
    InboundEvent,
    VerificationFailed,
    build_conversation_id,
    extract_media_urls,
    normalize_webhook_payload,
    split_conversation_id,
    summarize_attachments,
    verify_subscription,
)
from social_bot.services.platform_client import Platform
from tests.payloads import instagram_change_payload, messenger_payload


class TestVerifySubscription:
    def test_returns_challenge_on_matching_token(self):
        assert verify_subscription("subscribe", "secret", "12345", "secret") == "12345"

    def test_wrong_token_is_forbidden(self):
        with pytest.raises(VerificationFailed):
            verify_subscription("subscribe", "nope", "12345", "secret")

    def test_wrong_mode_is_forbidden(self):
        with pytest.raises(VerificationFailed):
            verify_subscription("unsubscribe", "secret", "12345", "secret")

    def test_unconfigured_token_never_matches(self):
        with pytest.raises(VerificationFailed):
            verify_subscription("subscribe", "", "12345", "")


class TestMessengerShape:
    def test_text_message(self):
        event = normalize_webhook_payload(messenger_payload(text="sofa large"))

        assert event == InboundEvent(platform=Platform.FACEBOOK, page_id="P1", sender_id="S1", text="sofa large")
        assert event.conversation_id == "P1_S1"
        assert event.message_text == "sofa large"
        assert event.has_attachments is False

    def test_single_attachment(self):
        event = normalize_webhook_payload(messenger_payload(attachments=["https://cdn.example.com/a.jpg"]))

        assert event.attachment_urls == ("https://cdn.example.com/a.jpg",)
        assert event.text is None
        assert event.message_text == "📷 Image: https://cdn.example.com/a.jpg"

    def test_multiple_attachments_keep_order_and_drop_caption(self):
        urls = ["https://cdn.example.com/1.jpg", "https://cdn.example.com/2.jpg"]
        event = normalize_webhook_payload(messenger_payload(text="look", attachments=urls))

        assert event.attachment_urls == tuple(urls)
        assert event.text is None
        assert event.message_text == "📷 Images:\nhttps://cdn.example.com/1.jpg\nhttps://cdn.example.com/2.jpg"

    def test_attachment_without_url_is_ignored(self):
        payload = messenger_payload(text="hi")
        payload["entry"][0]["messaging"][0]["message"]["attachments"] = [{"type": "fallback", "payload": {}}]

        event = normalize_webhook_payload(payload)

        assert event.attachment_urls == ()
        assert event.text == "hi"

    def test_instagram_object_with_messaging_shape(self):
        payload = messenger_payload(text="hello")
        payload["object"] = "instagram"

        assert normalize_webhook_payload(payload).platform == Platform.INSTAGRAM

    def test_echo_is_dropped(self):
        assert normalize_webhook_payload(messenger_payload(text="our reply", is_echo=True)) is None


class TestChangeFeedShape:
    def test_instagram_change_message(self):
        event = normalize_webhook_payload(instagram_change_payload("price?"))

        assert event.platform == Platform.INSTAGRAM
        assert event.sender_id == "S1"
        assert event.text == "price?"

    def test_change_without_messages_is_dropped(self):
        payload = instagram_change_payload("x")
        payload["entry"][0]["changes"][0]["value"] = {}

        assert normalize_webhook_payload(payload) is None


class TestDroppedEvents:
    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"entry": []},
            {"entry": "nope"},
            None,
            [],
            {"entry": [{"id": "P1"}]},
            {"entry": [{"id": "P1", "messaging": []}]},
            {"entry": [{"id": "P1", "messaging": [{"message": {"text": "no sender"}}]}]},
        ],
    )
    def test_malformed_payloads(self, payload):
        assert normalize_webhook_payload(payload) is None

    def test_empty_text_and_no_attachments(self):
        assert normalize_webhook_payload(messenger_payload(text="   ")) is None

    def test_delivery_receipt_without_message(self):
        payload = messenger_payload(text="x")
        del payload["entry"][0]["messaging"][0]["message"]

        assert normalize_webhook_payload(payload) is None

    def test_only_first_entry_is_read(self):
        payload = messenger_payload(text="first")
        payload["entry"].append(messenger_payload(text="second", sender_id="S2")["entry"][0])

        event = normalize_webhook_payload(payload)

        assert event.text == "first"
        assert event.sender_id == "S1"


class TestConversationId:
    def test_build_and_split(self):
        conversation_id = build_conversation_id("1234", "9876")
        assert conversation_id == "1234_9876"
        assert split_conversation_id(conversation_id) == ("1234", "9876")

    @pytest.mark.parametrize("value", ["", "1234", "_9876", "1234_"])
    def test_split_rejects_incomplete_ids(self, value):
        assert split_conversation_id(value) is None


class TestExtractMediaUrls:
    def test_multi_image_summary(self):
        urls = ["https://a.example.com/1.jpg", "https://a.example.com/2.jpg"]
        assert extract_media_urls(summarize_attachments(urls)) == urls

    def test_single_image_and_video(self):
        assert extract_media_urls("📷 Image: https://a.example.com/1.jpg") == ["https://a.example.com/1.jpg"]
        assert extract_media_urls("🎥 Video: https://a.example.com/v.mp4") == ["https://a.example.com/v.mp4"]

    def test_plain_text_has_no_urls(self):
        assert extract_media_urls("see https://a.example.com/1.jpg") == []
