"""Adding and removing an app's bot commands through the chat."""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from devstudio.conversation import replies
from devstudio.services import command_service


@pytest.fixture
def app(make_app):
    return make_app(title="Price Watcher")


def _menu(db, app):
    return replies.commands_menu(app, command_service.list_commands(db, app.id))


def test_add_then_delete_command(send, state_of, app, db):
    assert send("/commands") == _menu(db, app)
    assert send("/price") == replies.command_description_prompt("/price")
    assert state_of() == (
        "awaiting_cmd_desc",
        {"flow": "app_scope", "app_id": app.id, "new_command": "/price"},
    )
    assert send("Current BTC price") == replies.CMD_RESPONSE_PROMPT

    reply = send("BTC is $100k")

    commands = command_service.list_commands(db, app.id)
    assert [(c.command, c.description, c.response, c.is_enabled) for c in commands] == [
        ("/price", "Current BTC price", "BTC is $100k", True)
    ]
    assert reply == replies.command_added("/price", _menu(db, app))
    assert state_of() == ("awaiting_command", {"flow": "app_scope", "app_id": app.id})

    reply = send("delete /price")

    assert command_service.list_commands(db, app.id) == []
    assert reply == replies.command_deleted("/price", _menu(db, app))
    assert state_of() == ("awaiting_command", {"flow": "app_scope", "app_id": app.id})


def test_delete_adds_missing_slash(send, app, db):
    command_service.create_command(db, app_id=app.id, command="/price", description="d", response="r")
    send("/commands")

    send("delete price")

    assert command_service.find_command(db, app.id, "/price") is None


def test_delete_missing_command_is_reported(send, state_of, app, db):
    send("/commands")
    before = state_of()

    assert send("delete /nope") == replies.command_not_found("/nope", _menu(db, app))
    assert state_of() == before


def test_command_needs_slash(send, state_of, app):
    send("/commands")
    before = state_of()

    assert send("price") == replies.COMMAND_NEEDS_SLASH
    assert state_of() == before


def test_existing_command_rejected_with_hint(send, state_of, app, db):
    command_service.create_command(db, app_id=app.id, command="/price", description="d", response="r")
    send("/commands")

    reply = send("/price")

    assert reply == replies.command_exists("/price")
    assert "delete /price" in reply
    assert state_of()[0] == "awaiting_command"


def test_dev_studio_commands_interrupt_the_loop(send, state_of, app):
    send("/commands")

    assert send("/help") == replies.HELP
    assert state_of()[0] == "awaiting_command"

    send("/myapps")
    assert state_of()[0] == "awaiting_command"

    send("/cancel")
    assert state_of() == ("idle", {})


def test_store_failure_while_adding_command_resets(send, state_of, app, db, monkeypatch):
    def failing_create_command(*args, **kwargs):
        raise SQLAlchemyError("connection lost")

    monkeypatch.setattr(command_service, "create_command", failing_create_command)
    send("/commands")
    send("/price")
    send("Current BTC price")

    assert send("BTC is $100k") == replies.STORE_FAILURE
    assert state_of() == ("idle", {})
    assert command_service.list_commands(db, app.id) == []


def test_long_command_name_and_description_are_kept(send, app, db):
    name = "/" + "p" * 120
    description = "d" * 400
    send("/commands")
    send(name)
    send(description)
    send("ok")

    command = command_service.find_command(db, app.id, name)
    assert command.description == description
