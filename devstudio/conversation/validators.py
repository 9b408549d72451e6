"""Input checks for the Dev Studio wizard steps.

Every validator returns (is_valid, error_message, cleaned_value).
"""

import logging

logger = logging.getLogger(__name__)

APP_NAME_MIN_LENGTH = 3
APP_NAME_MAX_LENGTH = 50
APP_DESC_MIN_LENGTH = 10
ICON_MAX_LENGTH = 10
USERNAME_MIN_LENGTH = 5
USERNAME_SUFFIX = "app"
WEBHOOK_SCHEME = "https://"

ValidationResult = tuple[bool, str, str | None]


def validate_app_name(name: str) -> ValidationResult:
    if len(name) < APP_NAME_MIN_LENGTH:
        return (False, f"That name is too short. Use at least {APP_NAME_MIN_LENGTH} characters.", None)
    if len(name) > APP_NAME_MAX_LENGTH:
        return (False, f"That name is too long. Use at most {APP_NAME_MAX_LENGTH} characters.", None)
    return (True, "", name)


def validate_new_app_name(name: str) -> ValidationResult:
    """Rename check: same bounds as creation, single combined message."""
    if not APP_NAME_MIN_LENGTH <= len(name) <= APP_NAME_MAX_LENGTH:
        return (
            False,
            f"The name must be {APP_NAME_MIN_LENGTH} to {APP_NAME_MAX_LENGTH} characters long.",
            None,
        )
    return (True, "", name)


def validate_app_description(description: str) -> ValidationResult:
    if len(description) < APP_DESC_MIN_LENGTH:
        return (
            False,
            f"That description is too short. Use at least {APP_DESC_MIN_LENGTH} characters.",
            None,
        )
    return (True, "", description)


def validate_icon(icon: str) -> ValidationResult:
    # Coarse check: a single emoji, even a compound one, stays short.
    if len(icon) > ICON_MAX_LENGTH:
        return (False, "Send just one emoji.", None)
    return (True, "", icon)


def normalize_username(username: str) -> str:
    return username.removeprefix("@").lower()


def validate_username_format(username: str) -> ValidationResult:
    """Shape check only; uniqueness needs the app store."""
    cleaned = normalize_username(username)
    if len(cleaned) < USERNAME_MIN_LENGTH:
        return (False, f"That username is too short. Use at least {USERNAME_MIN_LENGTH} characters.", None)
    if not cleaned.endswith(USERNAME_SUFFIX):
        return (False, f"The username must end with '{USERNAME_SUFFIX}'.", None)
    return (True, "", cleaned)


def validate_webhook_url(url: str) -> ValidationResult:
    if not url.startswith(WEBHOOK_SCHEME):
        logger.debug("Rejected webhook URL without https scheme: %s", url)
        return (False, f"The URL must start with {WEBHOOK_SCHEME}", None)
    return (True, "", url)


def parse_number(value: str) -> int | None:
    """Plain ASCII digits only; signs, underscores and other scripts are rejected."""
    if not (value.isascii() and value.isdigit()):
        return None
    return int(value)
