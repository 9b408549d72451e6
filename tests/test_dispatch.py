"""Top-level routing: cancel, commands, idle input and recovery."""

import pytest

from conftest import USER_ID
from devstudio.conversation import DevStudioEngine, Step, replies
from devstudio.services import conversation_service


def _force_state(db, state, data):
    record = conversation_service.get_or_create_state(db, USER_ID)
    conversation_service.save_state(db, record, state, data)


def test_first_contact_creates_idle_record(send, state_of):
    assert send("/start") == replies.WELCOME
    assert state_of() == ("idle", {})


@pytest.mark.parametrize(
    "state, data",
    [
        ("idle", {}),
        ("awaiting_app_icon", {"flow": "new_app", "name": "Crypto Tracker", "description": "Tracks coin prices"}),
        ("selecting_app", {"flow": "app_selection", "action": "edit", "app_ids": [3, 2, 1]}),
        ("awaiting_cmd_response", {"flow": "app_scope", "app_id": 1, "new_command": "/price", "cmd_desc": "Price"}),
    ],
)
def test_cancel_always_returns_to_idle(send, state_of, db, state, data):
    _force_state(db, state, data)

    assert send("/cancel") == replies.CANCELLED
    assert state_of() == ("idle", {})


def test_repeated_cancel_and_help_do_not_change_state(send, state_of):
    for text in ("/cancel", "/cancel", "/help", "/help"):
        send(text)
        assert state_of() == ("idle", {})


def test_help_mid_flow_keeps_state_and_data(send, state_of):
    send("/newapp")
    send("Crypto Tracker")
    before = state_of()

    assert send("/help") == replies.HELP
    assert state_of() == before


def test_idle_text_is_not_understood(send, state_of):
    assert send("hello there") == replies.NOT_UNDERSTOOD
    assert send("/launch") == replies.UNKNOWN_COMMAND
    assert state_of() == ("idle", {})


def test_input_is_trimmed(send):
    assert send("   /help \n") == replies.HELP


def test_myapps_with_no_apps(send):
    assert send("/myapps") == replies.NO_APPS


def test_myapps_lists_status_and_users(send, make_app):
    make_app(title="Price Watcher", username="pricewatchapp")

    reply = send("/myapps")

    assert "1. 📈 Price Watcher" in reply
    assert "Username: @pricewatchapp" in reply
    assert "Status: ⏳ Under review" in reply
    assert "Users: 0" in reply


def test_data_bag_missing_required_field_resets(send, state_of, db):
    _force_state(db, "awaiting_username", {"flow": "new_app", "name": "Crypto Tracker"})

    assert send("mytradingapp") == replies.SESSION_EXPIRED
    assert state_of() == ("idle", {})


def test_data_bag_of_another_flow_resets(send, state_of, db):
    _force_state(db, "awaiting_app_desc", {"flow": "app_scope", "app_id": 1})

    assert send("A long enough description") == replies.SESSION_EXPIRED
    assert state_of() == ("idle", {})


def test_unknown_state_tag_resets(send, state_of, db):
    _force_state(db, "awaiting_payment", {})

    assert send("100") == replies.SESSION_EXPIRED
    assert state_of() == ("idle", {})


def test_malformed_selection_resets(send, state_of, db):
    _force_state(db, "selecting_app", {"flow": "app_selection", "action": "launch", "app_ids": [1]})

    assert send("1") == replies.SESSION_EXPIRED
    assert state_of() == ("idle", {})


def test_commands_still_work_from_a_broken_state(send, state_of, db):
    _force_state(db, "awaiting_payment", {})

    # Recovery happens before routing, so the command itself is not run.
    assert send("/newapp") == replies.SESSION_EXPIRED
    assert send("/newapp") == replies.NEW_APP_PROMPT
    assert state_of()[0] == "awaiting_app_name"


def test_engine_has_an_input_handler_for_every_step(db):
    engine = DevStudioEngine(db)

    assert set(engine._inputs) == set(Step) - {Step.IDLE}


def test_reset_state_clears_step_and_data(db):
    record = conversation_service.get_or_create_state(db, USER_ID)
    conversation_service.save_state(db, record, "awaiting_app_desc", {"flow": "new_app", "name": "Crypto Tracker"})

    conversation_service.reset_state(db, record)

    stored = conversation_service.get_state(db, USER_ID)
    assert (stored.state, stored.data) == ("idle", {})


def test_finished_flow_goes_through_reset(send, monkeypatch):
    resets = []
    original = conversation_service.reset_state

    def tracking_reset_state(db, record):
        resets.append(record.user_id)
        return original(db, record)

    monkeypatch.setattr(conversation_service, "reset_state", tracking_reset_state)
    send("/newapp")
    send("/cancel")

    assert resets == [USER_ID]
