"""Flask webhook endpoint tests."""

from unittest.mock import Mock

import pytest
from sqlalchemy.exc import OperationalError

from starterbot.database import UserRepository
from webapp.app import SECRET_HEADER, create_app

from conftest import TEST_USER_ID, make_message_update


@pytest.fixture
def client(bot_config, repository, telegram_api):
    app = create_app(bot_config, repository, telegram_request=telegram_api)
    app.config["TESTING"] = True
    return app.test_client()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}


def test_start_update_is_processed(client, repository, telegram_api):
    response = client.post("/webhook", json=make_message_update("/start"))

    assert response.status_code == 200
    assert response.get_json() == {"ok": True}
    assert repository.find_user_by_telegram_id(TEST_USER_ID) is not None
    assert telegram_api.sent("sendMessage")[0]["text"] == "Welcome to the Bot! Send /help for help."


def test_unhandled_update_still_succeeds(client, telegram_api):
    response = client.post("/webhook", json={"update_id": 7, "edited_channel_post": {
        "message_id": 1,
        "date": 1700000000,
        "edit_date": 1700000060,
        "chat": {"id": -1001234567890, "type": "channel", "title": "News"},
        "text": "edited",
    }})

    assert response.status_code == 200
    assert telegram_api.calls == []


@pytest.mark.parametrize("body", [
    "not json",
    "[1, 2, 3]",
    '{"message": {}}',
    '{"update_id": 1, "message": {"text": "hi"}}',
    '{"update_id": 2, "callback_query": {"id": "1"}}',
])
def test_malformed_body_is_rejected(client, telegram_api, body):
    response = client.post("/webhook", data=body, content_type="application/json")

    assert response.status_code == 400
    assert "error" in response.get_json()
    assert telegram_api.calls == []


def test_persistence_failure_is_a_server_error(bot_config, telegram_api):
    repository = Mock(spec=UserRepository)
    repository.upsert_user.side_effect = OperationalError("INSERT", {}, Exception("no such table: users"))
    client = create_app(bot_config, repository, telegram_request=telegram_api).test_client()

    response = client.post("/webhook", json=make_message_update("/start"))

    assert response.status_code == 500
    assert response.get_json()["ok"] is False
    assert telegram_api.sent("sendMessage") == []


class TestSecretToken:

    @pytest.fixture
    def secret_client(self, bot_config, repository, telegram_api):
        bot_config.webhook_secret = "s3cret"
        return create_app(bot_config, repository, telegram_request=telegram_api).test_client()

    def test_matching_secret_is_accepted(self, secret_client):
        response = secret_client.post(
            "/webhook", json=make_message_update("/help"), headers={SECRET_HEADER: "s3cret"}
        )

        assert response.status_code == 200

    @pytest.mark.parametrize("headers", [{}, {SECRET_HEADER: "wrong"}, {SECRET_HEADER: "s\xe9cret"}])
    def test_missing_or_wrong_secret_is_rejected(self, secret_client, telegram_api, headers):
        response = secret_client.post("/webhook", json=make_message_update("/help"), headers=headers)

        assert response.status_code == 401
        assert telegram_api.calls == []
