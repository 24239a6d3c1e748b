from unittest.mock import AsyncMock, patch

from social_bot.config import settings
from tests.payloads import PAGE_ID, SENDER_ID, messenger_payload


class TestVerifyWebhook:
    @patch.object(settings, "webhook_verify_token", "secret")
    def test_echoes_challenge(self, api_client):
        response = api_client.get(
            "/facebook/webhook",
            params={"hub.mode": "subscribe", "hub.verify_token": "secret", "hub.challenge": "CHALLENGE_42"},
        )

        assert response.status_code == 200
        assert response.text == "CHALLENGE_42"

    @patch.object(settings, "webhook_verify_token", "secret")
    def test_wrong_token_is_forbidden(self, api_client):
        response = api_client.get(
            "/facebook/webhook",
            params={"hub.mode": "subscribe", "hub.verify_token": "guess", "hub.challenge": "CHALLENGE_42"},
        )

        assert response.status_code == 403
        assert response.text == "Forbidden"

    @patch.object(settings, "webhook_verify_token", "secret")
    def test_missing_params_are_forbidden(self, api_client):
        assert api_client.get("/facebook/webhook").status_code == 403


class TestReceiveWebhook:
    def test_message_is_acknowledged_and_answered(self, api_client, platform_client):
        response = api_client.post("/facebook/webhook", json=messenger_payload(text="sofa large"))

        assert response.status_code == 200
        assert response.text == "EVENT_RECEIVED"
        platform_client.send_text.assert_awaited_once()
        assert platform_client.send_text.await_args.args[0] == SENDER_ID

    def test_non_message_payload_is_acknowledged(self, api_client, platform_client):
        response = api_client.post("/facebook/webhook", json={"object": "page", "entry": [{"id": PAGE_ID}]})

        assert response.status_code == 200
        assert response.text == "EVENT_RECEIVED"
        platform_client.send_text.assert_not_called()

    def test_invalid_json_is_acknowledged(self, api_client, pipeline):
        pipeline.handle_webhook = AsyncMock()

        response = api_client.post(
            "/facebook/webhook", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 200
        assert response.text == "EVENT_RECEIVED"
        pipeline.handle_webhook.assert_not_called()

    def test_processing_failure_is_acknowledged(self, api_client, platform_client):
        platform_client.send_text.side_effect = RuntimeError("graph down")

        with patch("social_bot.services.pipeline.alert_error"):
            response = api_client.post("/facebook/webhook", json=messenger_payload(text="hi"))

        assert response.status_code == 200
        assert response.text == "EVENT_RECEIVED"


class TestHealth:
    def test_health(self, api_client):
        assert api_client.get("/health").json() == {"status": "ok"}
