"""Tests for the Cloud Functions entrypoints."""

from unittest.mock import MagicMock, patch

import pytest

import main
from tips.models import DispatchReport


@pytest.fixture(autouse=True)
def reset_db_ready():
    """Reset module-level state between tests."""
    main._DB_READY = False
    yield
    main._DB_READY = False


def make_request(payload, method="POST"):
    request = MagicMock(method=method)
    request.get_json.return_value = payload
    return request


class TestAogTips:
    def test_rejects_non_post(self):
        assert main.aog_tips(make_request(None, method="GET")) == ''

    def test_rejects_missing_intent(self):
        assert main.aog_tips(make_request({"parameters": {}})) == ''

    def test_rejects_non_json_body(self):
        assert main.aog_tips(make_request(None)) == ''

    @pytest.mark.parametrize("payload", [
        {"intent": "tell_latest_tip", "session": {"push_opt_in": "bogus"}},
        {"intent": "tell_tip", "parameters": "voice"},
        {"intent": "finish_push_setup", "user": "user-1"},
        {"intent": 42},
        ["tell_tip"],
    ])
    @patch("main.respond_to_turn")
    @patch("main.init_db")
    def test_malformed_payload_returns_empty_body(self, mock_init, mock_respond, payload):
        assert main.aog_tips(make_request(payload)) == ''
        mock_respond.assert_not_called()

    @patch("main.init_db")
    @patch("main.respond_to_turn", return_value={"speech": "hi"})
    def test_handles_turn(self, mock_respond, mock_init):
        response = main.aog_tips(make_request({"intent": "Default Welcome Intent"}))

        assert response == {"speech": "hi"}
        turn = mock_respond.call_args.args[0]
        assert turn.intent == "Default Welcome Intent"

    @patch("main.init_db")
    @patch("main.respond_to_turn", return_value={"speech": "hi"})
    def test_schema_created_once(self, mock_respond, mock_init):
        main.aog_tips(make_request({"intent": "tell_tip"}))
        main.aog_tips(make_request({"intent": "tell_tip"}))

        mock_init.assert_called_once()


class TestTipCreated:
    @patch("main.init_db")
    @patch("main.dispatch_latest_tip_notifications", return_value=DispatchReport(tip_id=3))
    def test_dispatches_for_event_tip(self, mock_dispatch, mock_init):
        cloud_event = MagicMock()
        cloud_event.data = {"id": 3, "tip": "t", "url": "u", "category": "c", "created_at": 1}

        main.tip_created(cloud_event)

        tip = mock_dispatch.call_args.args[0]
        assert tip.id == 3
        assert tip.category == "c"
        mock_init.assert_called_once()
