"""Dev Studio conversation engine.

One inbound chat message in, one reply out. The engine loads the user's
persisted step and flow data, routes the message (cancel, then commands, then
step input), and saves the resulting step and flow in a single update.

User mistakes never change the step: the reply explains the problem and the
same step handles the next message. Store failures and unreadable flow data
send the user back to idle.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from functools import partial

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from devstudio.conversation import replies, validators
from devstudio.conversation.flows import (
    AppScope,
    AppSelection,
    FlowData,
    FlowStateError,
    Idle,
    NewAppDraft,
    dump_flow,
    load_flow,
)
from devstudio.conversation.states import (
    CLEAR_KEYWORDS,
    COMMAND_ACTIONS,
    SKIP_KEYWORD,
    AppAction,
    Command,
    Step,
    parse_command,
)
from devstudio.db.models import MiniApp
from devstudio.services import (
    app_service,
    category_service,
    command_service,
    conversation_service,
)

logger = logging.getLogger(__name__)

DELETE_COMMAND_PREFIX = "delete "
DELETE_CONFIRMATION = "YES"

EDIT_RENAME = "1"
EDIT_DESCRIBE = "2"
EDIT_COMMANDS = "3"
EDIT_WEBHOOK = "4"
EDIT_TOKEN = "5"


@dataclass(frozen=True)
class Turn:
    """Where the user goes next and what they are told."""

    step: Step
    flow: FlowData
    reply: str

    @classmethod
    def idle(cls, reply: str) -> "Turn":
        return cls(Step.IDLE, Idle(), reply)


CommandHandler = Callable[[int, Step, FlowData], Turn]
InputHandler = Callable[[int, str, FlowData], Turn]


def _load_step(value: str) -> Step:
    try:
        return Step(value)
    except ValueError as exc:
        raise FlowStateError(f"Unknown conversation state {value!r}") from exc


def _accepts_slash_input(step: Step, text: str) -> bool:
    """Slash-prefixed text that a step takes as input rather than a command."""
    if step is Step.AWAITING_WELCOME:
        return text == SKIP_KEYWORD
    if step is Step.AWAITING_WEBHOOK:
        return text in CLEAR_KEYWORDS
    # New command names are slash-prefixed by definition.
    return step is Step.AWAITING_COMMAND


class DevStudioEngine:
    def __init__(
        self,
        db: Session,
        token_factory: Callable[[], str] = app_service.generate_api_token,
    ) -> None:
        self.db = db
        self.token_factory = token_factory

        self._commands: dict[Command, CommandHandler] = {
            Command.START: self._cmd_start,
            Command.HELP: self._cmd_help,
            Command.NEWAPP: self._cmd_newapp,
            Command.MYAPPS: self._cmd_myapps,
        }
        for command, action in COMMAND_ACTIONS.items():
            self._commands[command] = partial(self._fan_out, action)

        self._inputs: dict[Step, InputHandler] = {
            Step.AWAITING_APP_NAME: self._on_app_name,
            Step.AWAITING_APP_DESC: self._on_app_description,
            Step.AWAITING_APP_ICON: self._on_app_icon,
            Step.AWAITING_CATEGORY: self._on_category,
            Step.AWAITING_USERNAME: self._on_username,
            Step.AWAITING_WELCOME: self._on_welcome,
            Step.SELECTING_APP: self._on_app_selection,
            Step.EDITING_APP: self._on_edit_choice,
            Step.AWAITING_NEW_NAME: self._on_new_name,
            Step.AWAITING_NEW_DESC: self._on_new_description,
            Step.AWAITING_COMMAND: self._on_command_name,
            Step.AWAITING_CMD_DESC: self._on_command_description,
            Step.AWAITING_CMD_RESPONSE: self._on_command_response,
            Step.AWAITING_WEBHOOK: self._on_webhook,
            Step.DELETING_APP: self._on_delete_confirmation,
        }

        unhandled = set(Step) - {Step.IDLE} - set(self._inputs)
        if unhandled:
            raise RuntimeError(
                "No input handler for: " + ", ".join(sorted(step.value for step in unhandled))
            )
        missing_commands = set(Command) - {Command.CANCEL} - set(self._commands)
        if missing_commands:
            raise RuntimeError(
                "No handler for: " + ", ".join(sorted(command.value for command in missing_commands))
            )

    def process(self, user_id: int, message: str) -> str:
        """Handle one message from `user_id` and return the reply text."""
        text = message.strip()
        record = conversation_service.get_or_create_state(self.db, user_id)
        previous = record.state

        try:
            step = _load_step(previous)
            flow = load_flow(step, record.data)
            turn = self._dispatch(user_id, text, step, flow)
        except FlowStateError as exc:
            logger.warning("Resetting conversation for user %s: %s", user_id, exc)
            turn = Turn.idle(replies.SESSION_EXPIRED)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Store failure for user %s in state %s", user_id, previous)
            turn = Turn.idle(replies.STORE_FAILURE)

        if turn.step is Step.IDLE:
            conversation_service.reset_state(self.db, record)
        else:
            conversation_service.save_state(self.db, record, turn.step.value, dump_flow(turn.flow))
        logger.info("User %s: %s -> %s", user_id, previous, turn.step.value)
        return turn.reply

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def _dispatch(self, user_id: int, text: str, step: Step, flow: FlowData) -> Turn:
        if text == Command.CANCEL.value:
            return Turn.idle(replies.CANCELLED)

        command = parse_command(text)
        if command is not None:
            return self._commands[command](user_id, step, flow)

        if step is Step.IDLE:
            reply = replies.UNKNOWN_COMMAND if text.startswith("/") else replies.NOT_UNDERSTOOD
            return Turn(step, flow, reply)

        if text.startswith("/") and not _accepts_slash_input(step, text):
            return Turn(step, flow, replies.UNKNOWN_COMMAND)

        return self._inputs[step](user_id, text, flow)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _cmd_start(self, user_id: int, step: Step, flow: FlowData) -> Turn:
        return Turn(step, flow, replies.WELCOME)

    def _cmd_help(self, user_id: int, step: Step, flow: FlowData) -> Turn:
        return Turn(step, flow, replies.HELP)

    def _cmd_newapp(self, user_id: int, step: Step, flow: FlowData) -> Turn:
        return Turn(Step.AWAITING_APP_NAME, NewAppDraft(), replies.NEW_APP_PROMPT)

    def _cmd_myapps(self, user_id: int, step: Step, flow: FlowData) -> Turn:
        apps = app_service.list_apps_by_creator(self.db, user_id)
        return Turn(step, flow, replies.my_apps(apps))

    def _fan_out(self, action: AppAction, user_id: int, step: Step, flow: FlowData) -> Turn:
        """Zero apps: explain. One app: go straight in. More: ask which one."""
        apps = app_service.list_apps_by_creator(self.db, user_id)

        if not apps:
            reply = replies.NO_APPS_TO_DELETE if action is AppAction.DELETE else replies.NO_APPS
            return Turn(step, flow, reply)

        if len(apps) == 1:
            return self._enter_action(action, apps[0])

        selection = AppSelection(action=action, app_ids=tuple(app.id for app in apps))
        return Turn(
            Step.SELECTING_APP,
            selection,
            replies.app_list(apps, replies.SELECTION_HEADERS[action]),
        )

    def _enter_action(self, action: AppAction, app: MiniApp) -> Turn:
        if action is AppAction.TOKEN:
            return Turn.idle(replies.token(app))

        scope = AppScope(app_id=app.id)
        if action is AppAction.EDIT:
            return Turn(Step.EDITING_APP, scope, replies.edit_menu(app))
        if action is AppAction.DELETE:
            return Turn(Step.DELETING_APP, scope, replies.delete_prompt(app))
        if action is AppAction.COMMANDS:
            return Turn(Step.AWAITING_COMMAND, scope, self._commands_menu(app))
        if action is AppAction.WEBHOOK:
            return Turn(Step.AWAITING_WEBHOOK, scope, replies.webhook_prompt(app))

        raise FlowStateError(f"Unknown app action {action!r}")

    # ------------------------------------------------------------------
    # New app wizard
    # ------------------------------------------------------------------

    def _on_app_name(self, user_id: int, text: str, flow: NewAppDraft) -> Turn:
        is_valid, error, name = validators.validate_app_name(text)
        if not is_valid:
            return Turn(Step.AWAITING_APP_NAME, flow, error)

        return Turn(
            Step.AWAITING_APP_DESC,
            flow.model_copy(update={"name": name}),
            replies.name_accepted(name),
        )

    def _on_app_description(self, user_id: int, text: str, flow: NewAppDraft) -> Turn:
        is_valid, error, description = validators.validate_app_description(text)
        if not is_valid:
            return Turn(Step.AWAITING_APP_DESC, flow, error)

        return Turn(
            Step.AWAITING_APP_ICON,
            flow.model_copy(update={"description": description}),
            replies.ICON_PROMPT,
        )

    def _on_app_icon(self, user_id: int, text: str, flow: NewAppDraft) -> Turn:
        is_valid, error, icon = validators.validate_icon(text)
        if not is_valid:
            return Turn(Step.AWAITING_APP_ICON, flow, error)

        categories = category_service.list_categories(self.db)
        return Turn(
            Step.AWAITING_CATEGORY,
            flow.model_copy(update={"icon": icon}),
            replies.category_list(categories),
        )

    def _on_category(self, user_id: int, text: str, flow: NewAppDraft) -> Turn:
        number = validators.parse_number(text)
        if number is None:
            return Turn(Step.AWAITING_CATEGORY, flow, replies.ENTER_CATEGORY_NUMBER)

        categories = category_service.list_categories(self.db)
        if not 1 <= number <= len(categories):
            return Turn(Step.AWAITING_CATEGORY, flow, replies.INVALID_CATEGORY_NUMBER)

        category = categories[number - 1]
        return Turn(
            Step.AWAITING_USERNAME,
            flow.model_copy(update={"category_id": category.id}),
            replies.username_prompt(category),
        )

    def _on_username(self, user_id: int, text: str, flow: NewAppDraft) -> Turn:
        is_valid, error, username = validators.validate_username_format(text)
        if not is_valid:
            return Turn(Step.AWAITING_USERNAME, flow, error)

        if app_service.username_taken(self.db, username):
            return Turn(Step.AWAITING_USERNAME, flow, replies.USERNAME_TAKEN)

        return Turn(
            Step.AWAITING_WELCOME,
            flow.model_copy(update={"username": username}),
            replies.welcome_prompt(username),
        )

    def _on_welcome(self, user_id: int, text: str, flow: NewAppDraft) -> Turn:
        welcome = "" if text == SKIP_KEYWORD else text
        draft = flow.model_copy(update={"welcome": welcome})
        api_token = self.token_factory()

        try:
            app = app_service.create_app(
                self.db,
                title=draft.name,
                description=draft.description,
                icon=draft.icon,
                category_id=draft.category_id,
                creator_id=user_id,
                bot_username=draft.username,
                welcome_message=welcome,
                api_token=api_token,
            )
        except SQLAlchemyError:
            # create_app has rolled back and logged; the draft is dropped.
            return Turn.idle(replies.CREATE_FAILED)

        return Turn.idle(replies.app_created(app, api_token))

    # ------------------------------------------------------------------
    # App selection
    # ------------------------------------------------------------------

    def _on_app_selection(self, user_id: int, text: str, flow: AppSelection) -> Turn:
        number = validators.parse_number(text)
        if number is None:
            return Turn(Step.SELECTING_APP, flow, replies.ENTER_APP_NUMBER)
        if not 1 <= number <= len(flow.app_ids):
            return Turn(Step.SELECTING_APP, flow, replies.INVALID_APP_NUMBER)

        app = app_service.get_app(self.db, flow.app_ids[number - 1], creator_id=user_id)
        if app is None:
            return Turn.idle(replies.APP_GONE)

        return self._enter_action(flow.action, app)

    # ------------------------------------------------------------------
    # App-scoped sub-flows
    # ------------------------------------------------------------------

    def _scoped_app(self, user_id: int, flow: AppScope) -> MiniApp | None:
        return app_service.get_app(self.db, flow.app_id, creator_id=user_id)

    def _commands_menu(self, app: MiniApp) -> str:
        return replies.commands_menu(app, command_service.list_commands(self.db, app.id))

    def _on_edit_choice(self, user_id: int, text: str, flow: AppScope) -> Turn:
        app = self._scoped_app(user_id, flow)
        if app is None:
            return Turn.idle(replies.APP_GONE)

        scope = AppScope(app_id=app.id)
        if text == EDIT_RENAME:
            return Turn(Step.AWAITING_NEW_NAME, scope, replies.current_name(app))
        if text == EDIT_DESCRIBE:
            return Turn(Step.AWAITING_NEW_DESC, scope, replies.current_description(app))
        if text == EDIT_COMMANDS:
            return Turn(Step.AWAITING_COMMAND, scope, self._commands_menu(app))
        if text == EDIT_WEBHOOK:
            return Turn(Step.AWAITING_WEBHOOK, scope, replies.webhook_prompt(app))
        if text == EDIT_TOKEN:
            return Turn.idle(replies.token(app))

        return Turn(Step.EDITING_APP, flow, replies.EDIT_CHOICE_HINT)

    def _on_new_name(self, user_id: int, text: str, flow: AppScope) -> Turn:
        is_valid, error, name = validators.validate_new_app_name(text)
        if not is_valid:
            return Turn(Step.AWAITING_NEW_NAME, flow, error)

        app = self._scoped_app(user_id, flow)
        if app is None:
            return Turn.idle(replies.APP_GONE)

        app_service.rename_app(self.db, app, name)
        return Turn.idle(replies.name_changed(name))

    def _on_new_description(self, user_id: int, text: str, flow: AppScope) -> Turn:
        is_valid, error, description = validators.validate_app_description(text)
        if not is_valid:
            return Turn(Step.AWAITING_NEW_DESC, flow, error)

        app = self._scoped_app(user_id, flow)
        if app is None:
            return Turn.idle(replies.APP_GONE)

        app_service.describe_app(self.db, app, description)
        return Turn.idle(replies.DESCRIPTION_UPDATED)

    def _on_command_name(self, user_id: int, text: str, flow: AppScope) -> Turn:
        app = self._scoped_app(user_id, flow)
        if app is None:
            return Turn.idle(replies.APP_GONE)

        scope = AppScope(app_id=app.id)
        if text.startswith(DELETE_COMMAND_PREFIX):
            target = text[len(DELETE_COMMAND_PREFIX):].strip()
            if not target.startswith("/"):
                target = "/" + target

            deleted = command_service.delete_command(self.db, app.id, target)
            menu = self._commands_menu(app)
            if deleted:
                return Turn(Step.AWAITING_COMMAND, scope, replies.command_deleted(target, menu))
            return Turn(Step.AWAITING_COMMAND, scope, replies.command_not_found(target, menu))

        if not text.startswith("/"):
            return Turn(Step.AWAITING_COMMAND, flow, replies.COMMAND_NEEDS_SLASH)

        if command_service.find_command(self.db, app.id, text) is not None:
            return Turn(Step.AWAITING_COMMAND, flow, replies.command_exists(text))

        return Turn(
            Step.AWAITING_CMD_DESC,
            scope.model_copy(update={"new_command": text}),
            replies.command_description_prompt(text),
        )

    def _on_command_description(self, user_id: int, text: str, flow: AppScope) -> Turn:
        return Turn(
            Step.AWAITING_CMD_RESPONSE,
            flow.model_copy(update={"cmd_desc": text}),
            replies.CMD_RESPONSE_PROMPT,
        )

    def _on_command_response(self, user_id: int, text: str, flow: AppScope) -> Turn:
        app = self._scoped_app(user_id, flow)
        if app is None:
            return Turn.idle(replies.APP_GONE)

        command_service.create_command(
            self.db,
            app_id=app.id,
            command=flow.new_command,
            description=flow.cmd_desc,
            response=text,
        )
        return Turn(
            Step.AWAITING_COMMAND,
            AppScope(app_id=app.id),
            replies.command_added(flow.new_command, self._commands_menu(app)),
        )

    def _on_webhook(self, user_id: int, text: str, flow: AppScope) -> Turn:
        app = self._scoped_app(user_id, flow)
        if app is None:
            return Turn.idle(replies.APP_GONE)

        if text in CLEAR_KEYWORDS:
            app_service.set_webhook(self.db, app, "")
            return Turn.idle(replies.WEBHOOK_CLEARED)

        is_valid, error, url = validators.validate_webhook_url(text)
        if not is_valid:
            return Turn(Step.AWAITING_WEBHOOK, flow, error)

        app_service.set_webhook(self.db, app, url)
        return Turn.idle(replies.webhook_set(url))

    def _on_delete_confirmation(self, user_id: int, text: str, flow: AppScope) -> Turn:
        if text.upper() != DELETE_CONFIRMATION:
            return Turn.idle(replies.DELETE_ABORTED)

        app = self._scoped_app(user_id, flow)
        if app is None:
            return Turn.idle(replies.APP_GONE)

        title = app_service.delete_app(self.db, app)
        return Turn.idle(replies.app_deleted(title))
