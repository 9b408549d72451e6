"""New app wizard, from /newapp to the created app."""

import pytest
from sqlalchemy import Text
from sqlalchemy.exc import SQLAlchemyError

from conftest import OTHER_USER_ID, USER_ID
from devstudio.conversation import DevStudioEngine, replies
from devstudio.db.models import MODERATION_PENDING, BotCommand, MiniApp, WebhookLog
from devstudio.services import app_service, command_service


def _walk_to_username(send):
    send("/newapp")
    send("Crypto Tracker")
    send("Tracks coin prices in real time")
    send("🤖")
    send("1")


def test_happy_path_creates_pending_app_with_start_command(send, state_of, db):
    assert send("/newapp") == replies.NEW_APP_PROMPT
    assert send("Crypto Tracker") == replies.name_accepted("Crypto Tracker")
    assert send("Tracks coin prices in real time") == replies.ICON_PROMPT
    assert "1. 🤖 AI" in send("🤖")
    assert "Category: 🤖 AI" in send("1")
    assert send("mytradingapp") == replies.welcome_prompt("mytradingapp")

    reply = send("Hi!")

    apps = app_service.list_apps_by_creator(db, USER_ID)
    assert len(apps) == 1
    app = apps[0]
    assert app.title == "Crypto Tracker"
    assert app.description == "Tracks coin prices in real time"
    assert app.icon == "🤖"
    assert app.bot_username == "mytradingapp"
    assert app.category.slug == "ai"
    assert app.moderation_status == MODERATION_PENDING
    assert app.api_token == "token-1"
    assert "token-1" in reply

    commands = command_service.list_commands(db, app.id)
    assert [(c.command, c.response) for c in commands] == [("/start", "Hi!")]
    assert state_of() == ("idle", {})


def test_invalid_name_keeps_state_and_data(send, state_of):
    send("/newapp")

    reply = send("ab")

    assert "too short" in reply
    assert state_of() == ("awaiting_app_name", {"flow": "new_app"})


def test_name_too_long_rejected(send, state_of):
    send("/newapp")

    assert "too long" in send("x" * 51)
    assert state_of()[0] == "awaiting_app_name"


def test_short_description_rejected(send, state_of):
    send("/newapp")
    send("Crypto Tracker")

    assert "too short" in send("Too short")
    assert state_of() == ("awaiting_app_desc", {"flow": "new_app", "name": "Crypto Tracker"})


def test_category_input_must_be_a_listed_number(send, state_of):
    send("/newapp")
    send("Crypto Tracker")
    send("Tracks coin prices in real time")
    send("🤖")

    assert send("abc") == replies.ENTER_CATEGORY_NUMBER
    assert send("0") == replies.INVALID_CATEGORY_NUMBER
    assert send("9") == replies.INVALID_CATEGORY_NUMBER
    assert state_of()[0] == "awaiting_category"


def test_username_shape_rejected(send, state_of):
    _walk_to_username(send)
    before = state_of()

    assert "end with 'app'" in send("short")
    assert "end with 'app'" in send("tradingbot")
    assert "too short" in send("@App")
    assert state_of() == before


def test_username_is_normalized(send):
    _walk_to_username(send)

    assert send("@MyTradingApp") == replies.welcome_prompt("mytradingapp")


def test_taken_username_rejected_and_original_untouched(send, state_of, make_app, db):
    original = make_app(title="Original", username="mytradingapp", creator_id=OTHER_USER_ID)
    _walk_to_username(send)

    assert send("mytradingapp") == replies.USERNAME_TAKEN
    assert state_of()[0] == "awaiting_username"

    db.refresh(original)
    assert original.title == "Original"
    assert original.creator_id == OTHER_USER_ID
    assert app_service.list_apps_by_creator(db, USER_ID) == []


def test_skip_creates_no_start_command(send, db):
    _walk_to_username(send)
    send("mytradingapp")

    send("/skip")

    app = app_service.get_app_by_username(db, "mytradingapp")
    assert app.welcome_message == ""
    assert command_service.list_commands(db, app.id) == []


def test_store_failure_at_final_step_resets_without_app(send, state_of, db, monkeypatch):
    def failing_create_app(*args, **kwargs):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(app_service, "create_app", failing_create_app)
    _walk_to_username(send)
    send("mytradingapp")

    assert send("Hi!") == replies.CREATE_FAILED
    assert state_of() == ("idle", {})
    assert app_service.list_apps_by_creator(db, USER_ID) == []


def test_unknown_slash_text_mid_wizard_is_rejected(send, state_of):
    send("/newapp")
    send("Crypto Tracker")
    before = state_of()

    assert send("/price") == replies.UNKNOWN_COMMAND
    assert state_of() == before


def test_newapp_mid_wizard_starts_a_fresh_draft(send, state_of):
    send("/newapp")
    send("Crypto Tracker")

    send("/newapp")

    assert state_of() == ("awaiting_app_name", {"flow": "new_app"})


def test_long_description_fits_the_app_row(send, db):
    description = "Tracks coin prices. " * 30
    send("/newapp")
    send("Crypto Tracker")
    send(description)
    send("🤖")
    send("1")
    send("mytradingapp")
    send("/skip")

    app = app_service.get_app_by_username(db, "mytradingapp")
    assert app.description == description.strip()
    assert app.subtitle == description.strip()


@pytest.mark.parametrize(
    "column",
    [
        MiniApp.__table__.c.subtitle,
        MiniApp.__table__.c.bot_username,
        MiniApp.__table__.c.webhook_url,
        BotCommand.__table__.c.command,
        BotCommand.__table__.c.description,
        WebhookLog.__table__.c.url,
    ],
    ids=lambda column: f"{column.table.name}.{column.name}",
)
def test_free_text_columns_have_no_length_cap(column):
    assert isinstance(column.type, Text)


def test_generated_tokens_are_fresh_64_char_hex():
    tokens = [app_service.generate_api_token() for _ in range(100)]

    assert len(set(tokens)) == len(tokens)
    for token in tokens:
        assert len(token) == 64
        int(token, 16)


def test_default_token_factory_issues_distinct_tokens(db, make_app):
    existing = make_app(username="pricewatchapp")
    engine = DevStudioEngine(db)
    for text in ("/newapp", "Crypto Tracker", "Tracks coin prices in real time", "🤖", "1", "mytradingapp", "/skip"):
        engine.process(USER_ID, text)

    created = app_service.get_app_by_username(db, "mytradingapp")
    assert len(created.api_token) == 64
    assert created.api_token != existing.api_token
