"""Reply texts and formatting helpers for Dev Studio."""

from collections.abc import Sequence

from devstudio.conversation.states import AppAction
from devstudio.db.models import (
    MODERATION_APPROVED,
    MODERATION_REJECTED,
    BotCommand,
    Category,
    MiniApp,
)

WELCOME = """Hi! ⚡ Welcome to Dev Studio!

Here you can:
• Create a new app
• Set up commands and auto-replies
• Get an API token for integrations
• Configure webhooks

Start with /newapp to create your first app!

/help - all commands"""

HELP = """📋 Available commands:

🆕 Create and manage
/newapp - Create a new app
/myapps - List my apps
/edit - Edit an app
/delete - Delete an app

⚙️ App settings
/token - Show the API token
/commands - Configure commands
/webhook - Configure the webhook

❌ /cancel - Cancel the current action"""

CANCELLED = "Action cancelled. What can I do for you?\n\nUse /help for the list of commands."
UNKNOWN_COMMAND = "Unknown command. Use /help for the list of commands."
NOT_UNDERSTOOD = "I don't understand. Use /help for the list of commands."
SESSION_EXPIRED = "I lost track of what we were doing. Let's start over: use /help for the list of commands."
STORE_FAILURE = "Something went wrong while saving. Please try again."
CREATE_FAILED = "Something went wrong while creating the app. Try again with /newapp"
APP_GONE = "That app no longer exists. Use /myapps to see your apps."

NEW_APP_PROMPT = """Great! Let's create a new app.

What will your app be called?
(For example: "Crypto Trading" or "NFT Gallery")"""

ICON_PROMPT = "Now pick an icon (emoji) for the app:\n\n(Send one emoji, for example: 🤖 🎮 💰 🔥 ⚡)"
NO_APPS = "You have no apps yet. Create your first one with /newapp"
NO_APPS_TO_DELETE = "You have no apps."
ENTER_CATEGORY_NUMBER = "Enter the category number."
INVALID_CATEGORY_NUMBER = "Invalid category number."
USERNAME_TAKEN = "That username is already taken. Try another one."
ENTER_APP_NUMBER = "Enter the app number."
INVALID_APP_NUMBER = "Invalid number."
EDIT_CHOICE_HINT = "Choose an option from 1 to 5."
COMMAND_NEEDS_SLASH = "A command must start with /"
CMD_RESPONSE_PROMPT = "Now enter the app's reply to this command:"
WEBHOOK_CLEARED = "✅ Webhook removed"
DELETE_ABORTED = "Deletion cancelled."
DESCRIPTION_UPDATED = "✅ Description updated!\n\nThe app has been sent for moderation again."

SELECTION_HEADERS = {
    AppAction.TOKEN: "Choose the app to show the token for (enter the number):",
    AppAction.EDIT: "Choose the app to edit (enter the number):",
    AppAction.DELETE: "Choose the app to delete (enter the number):",
    AppAction.COMMANDS: "Choose the app to configure commands for (enter the number):",
    AppAction.WEBHOOK: "Choose the app to configure the webhook for (enter the number):",
}

_STATUS_LABELS = {
    MODERATION_APPROVED: "✅ Active",
    MODERATION_REJECTED: "❌ Rejected",
}
_PENDING_LABEL = "⏳ Under review"


def moderation_label(status: str) -> str:
    return _STATUS_LABELS.get(status, _PENDING_LABEL)


def my_apps(apps: Sequence[MiniApp]) -> str:
    if not apps:
        return NO_APPS

    lines = ["📱 Your apps:", ""]
    for number, app in enumerate(apps, start=1):
        username = f"@{app.bot_username}" if app.bot_username else "not set"
        lines.append(f"{number}. {app.icon} {app.title}")
        lines.append(f"   Username: {username}")
        lines.append(f"   Status: {moderation_label(app.moderation_status)}")
        lines.append(f"   Users: {app.users_count}")
        lines.append("")
    lines.append("Use /edit to edit an app or /token to get its token")
    return "\n".join(lines)


def app_list(apps: Sequence[MiniApp], header: str) -> str:
    lines = [header, ""]
    for number, app in enumerate(apps, start=1):
        lines.append(f"{number}. {app.icon} {app.title} (@{app.bot_username})")
    return "\n".join(lines) + "\n"


def category_list(categories: Sequence[Category]) -> str:
    lines = ["Choose a category for the app (enter the number):", ""]
    for number, category in enumerate(categories, start=1):
        lines.append(f"{number}. {category.icon} {category.name}")
    return "\n".join(lines) + "\n"


def name_accepted(name: str) -> str:
    return f"Great name: {name}!\n\nNow describe what your app does (a short description):"


def username_prompt(category: Category) -> str:
    return (
        f"Category: {category.icon} {category.name}\n\n"
        "Now choose a username for the app.\n\n"
        "The username must:\n"
        "• Be unique\n"
        "• Contain only a-z, 0-9 and _\n"
        "• End with 'app'\n\n"
        "(For example: mytradingapp, nft_gallery_app)"
    )


def welcome_prompt(username: str) -> str:
    return (
        f"Username @{username} is available! ✅\n\n"
        "Now write a welcome message.\n\n"
        "Users will see it when they send /start:\n\n"
        "(Or send /skip to skip this step)"
    )


def app_created(app: MiniApp, token: str) -> str:
    return f"""🎉 Congratulations! Your app has been created!

{app.icon} {app.title}
@{app.bot_username}

🔑 API Token (keep it safe!):
{token}

📋 Status: {_PENDING_LABEL}
The app will be reviewed within 24 hours.

What's next:
• /commands - add commands
• /webhook - set up a webhook
• /token - show the token again

API documentation: /help"""


def token(app: MiniApp) -> str:
    return f"""🔑 API Token for {app.icon} {app.title}

{app.api_token}

⚠️ Keep your token safe!"""


def edit_menu(app: MiniApp) -> str:
    return f"""⚙️ Editing: {app.icon} {app.title}

What do you want to change?

1. 📝 Name
2. 📄 Description
3. 📋 Commands
4. 🔗 Webhook
5. 🔑 Show token

Enter a number or /cancel to cancel:"""


def delete_prompt(app: MiniApp) -> str:
    return (
        f'⚠️ Are you sure you want to delete the app "{app.title}"?\n\n'
        "Enter YES to confirm or /cancel to cancel."
    )


def app_deleted(title: str) -> str:
    return f'✅ App "{title}" deleted.'


def webhook_prompt(app: MiniApp) -> str:
    current = app.webhook_url or "not set"
    return (
        f"🔗 Webhook for {app.title}\n\n"
        f"Current URL: {current}\n\n"
        "Enter the new webhook URL, 'clear' to remove it, or /cancel to cancel:"
    )


def webhook_set(url: str) -> str:
    return f"✅ Webhook set:\n{url}\n\nUser messages will now be sent to this URL."


def current_name(app: MiniApp) -> str:
    return f"Current name: {app.title}\n\nEnter the new name:"


def current_description(app: MiniApp) -> str:
    return f"Current description: {app.description}\n\nEnter the new description:"


def name_changed(name: str) -> str:
    return f"✅ Name changed to: {name}\n\nThe app has been sent for moderation again."


def commands_menu(app: MiniApp, commands: Sequence[BotCommand]) -> str:
    lines = [f"📋 Commands of {app.title}:", ""]
    if not commands:
        lines.append("No commands yet.")
    else:
        lines.extend(f"{command.command} - {command.description}" for command in commands)
    lines.append("")
    lines.append("Enter a new command (for example /price)")
    lines.append("Or 'delete /command' to remove one")
    lines.append("")
    lines.append("/cancel - exit")
    return "\n".join(lines)


def command_deleted(command: str, menu: str) -> str:
    return f"✅ Command {command} deleted!\n\n{menu}"


def command_not_found(command: str, menu: str) -> str:
    return f"Command {command} does not exist.\n\n{menu}"


def command_exists(command: str) -> str:
    return f"Command {command} already exists. To remove it, send: delete {command}"


def command_description_prompt(command: str) -> str:
    return f"Command: {command}\n\nEnter a short description of the command:"


def command_added(command: str, menu: str) -> str:
    return f"✅ Command {command} added!\n\n{menu}"
