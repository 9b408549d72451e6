"""Dev Studio conversation states, commands and app actions."""

from enum import Enum


class Step(str, Enum):
    IDLE = "idle"

    # New app wizard
    AWAITING_APP_NAME = "awaiting_app_name"
    AWAITING_APP_DESC = "awaiting_app_desc"
    AWAITING_APP_ICON = "awaiting_app_icon"
    AWAITING_CATEGORY = "awaiting_category"
    AWAITING_USERNAME = "awaiting_username"
    AWAITING_WELCOME = "awaiting_welcome"

    # Picking one of several apps
    SELECTING_APP = "selecting_app"

    # Working on one app
    EDITING_APP = "editing_app"
    AWAITING_NEW_NAME = "awaiting_new_name"
    AWAITING_NEW_DESC = "awaiting_new_desc"
    AWAITING_COMMAND = "awaiting_command"
    AWAITING_CMD_DESC = "awaiting_cmd_desc"
    AWAITING_CMD_RESPONSE = "awaiting_cmd_response"
    AWAITING_WEBHOOK = "awaiting_webhook"
    DELETING_APP = "deleting_app"


NEW_APP_STEPS = frozenset(
    {
        Step.AWAITING_APP_NAME,
        Step.AWAITING_APP_DESC,
        Step.AWAITING_APP_ICON,
        Step.AWAITING_CATEGORY,
        Step.AWAITING_USERNAME,
        Step.AWAITING_WELCOME,
    }
)

APP_SCOPED_STEPS = frozenset(
    {
        Step.EDITING_APP,
        Step.AWAITING_NEW_NAME,
        Step.AWAITING_NEW_DESC,
        Step.AWAITING_COMMAND,
        Step.AWAITING_CMD_DESC,
        Step.AWAITING_CMD_RESPONSE,
        Step.AWAITING_WEBHOOK,
        Step.DELETING_APP,
    }
)


class Command(str, Enum):
    START = "/start"
    HELP = "/help"
    NEWAPP = "/newapp"
    MYAPPS = "/myapps"
    TOKEN = "/token"
    EDIT = "/edit"
    DELETE = "/delete"
    COMMANDS = "/commands"
    WEBHOOK = "/webhook"
    CANCEL = "/cancel"


class AppAction(str, Enum):
    """Sub-flow to resume once the user has picked an app."""

    TOKEN = "token"
    EDIT = "edit"
    DELETE = "delete"
    COMMANDS = "commands"
    WEBHOOK = "webhook"


# Ownership-scoped commands and the sub-flow each one leads to.
COMMAND_ACTIONS = {
    Command.TOKEN: AppAction.TOKEN,
    Command.EDIT: AppAction.EDIT,
    Command.DELETE: AppAction.DELETE,
    Command.COMMANDS: AppAction.COMMANDS,
    Command.WEBHOOK: AppAction.WEBHOOK,
}

SKIP_KEYWORD = "/skip"
CLEAR_KEYWORDS = frozenset({"clear", "/clear"})


def parse_command(message: str) -> Command | None:
    """Exact match against the Dev Studio command set."""
    try:
        return Command(message)
    except ValueError:
        return None
