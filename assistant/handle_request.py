"""
Webhook turn handling: routes a resolved intent to the tip repository or the
opt-in flows and builds the response for the conversational platform.
"""

from dataclasses import asdict
from typing import Callable, Dict, Optional

from tips.constants import (
    CATEGORY_PARAMETER,
    FINISH_PUSH_SETUP_INTENT,
    FINISH_UPDATE_SETUP_INTENT,
    RANDOM_CATEGORY,
    SETUP_PUSH_INTENT,
    SETUP_UPDATE_INTENT,
    TELL_LATEST_TIP_INTENT,
    TELL_TIP_INTENT,
    WELCOME_INTENT,
)
from tips.database import get_most_recent_tip, list_categories, pick_tip_by_category
from tips.errors import NotFound, StoreUnavailable
from tips.models import ConversationSession, OptInState, Tip
from tips.opt_in import (
    complete_daily_update_setup,
    complete_push_setup,
    request_daily_update,
    request_push_permission,
)
from util.logging_util import log_turn_received, log_turn_response, setup_logger

logger = setup_logger(__name__)

SCREEN_OUTPUT = "actions.capability.SCREEN_OUTPUT"
PERMISSION_ARGUMENT = "PERMISSION"
REGISTER_UPDATE_ARGUMENT = "REGISTER_UPDATE"
TURN_OBJECT_FIELDS = ("parameters", "arguments", "user", "surface", "session")

SEND_DAILY_SUGGESTION = "Send daily"
ALERT_ME_SUGGESTION = "Alert me of new tips"

NO_TIP_MESSAGE = "Sorry, I couldn't find a tip for that right now."
FAILURE_MESSAGE = "Sorry, something went wrong. Please try again later."
UNKNOWN_INTENT_MESSAGE = "Sorry, I can't help with that yet."


class Turn:
    """One inbound conversational turn, with its intent already resolved.

    Raises ValueError for a payload that is not shaped like a turn.
    """

    def __init__(self, request_data: dict):
        if not isinstance(request_data, dict) or not isinstance(request_data.get("intent"), str):
            raise ValueError(f"Turn request has no intent: {request_data}")
        for key in TURN_OBJECT_FIELDS:
            if not isinstance(request_data.get(key) or {}, dict):
                raise ValueError(f"Turn request field '{key}' must be an object")

        self.intent: str = request_data["intent"]
        self.parameters: dict = request_data.get("parameters") or {}
        self.arguments: dict = request_data.get("arguments") or {}
        self.user_id: str = (request_data.get("user") or {}).get("id", "")
        capabilities = (request_data.get("surface") or {}).get("capabilities") or []
        self.has_screen: bool = SCREEN_OUTPUT in capabilities
        self.session = ConversationSession.from_dict(request_data.get("session"))


def _response(
    turn: Turn,
    speech: str,
    expect_user_response: bool = False,
    suggestions: Optional[list] = None,
    link: Optional[str] = None,
    system_intent: Optional[dict] = None,
) -> dict:
    response = {
        "speech": speech,
        "expect_user_response": expect_user_response,
        "suggestions": suggestions or [],
        "session": turn.session.to_dict(),
    }
    if link:
        response["link"] = link
    if system_intent:
        response["system_intent"] = system_intent
    return response


def _tell_tip(turn: Turn, tip: Tip, suggestion: str, asked_flag: str) -> dict:
    """Speak a tip, offering the notification suggestion once per session."""
    if not turn.has_screen:
        return _response(turn, tip.text)

    suggestions = []
    if not getattr(turn.session, asked_flag):
        suggestions.append(suggestion)
        setattr(turn.session, asked_flag, True)
    return _response(
        turn, tip.text, expect_user_response=True, suggestions=suggestions, link=tip.url
    )


def handle_welcome(turn: Turn) -> dict:
    categories = list_categories()
    spoken_categories = ", ".join(c for c in categories if c != RANDOM_CATEGORY)
    welcome_message = (
        "Hi! Welcome to Actions on Google Tips! "
        "I can offer you tips for Actions on Google. You can choose to "
        "hear the most recently added tip, or you can pick a category "
        f"from {spoken_categories}, or I can tell you a tip "
        "from a randomly selected category."
    )
    suggestions = categories if turn.has_screen else []
    return _response(turn, welcome_message, expect_user_response=True, suggestions=suggestions)


def handle_tell_tip(turn: Turn) -> dict:
    category = turn.parameters.get(CATEGORY_PARAMETER) or RANDOM_CATEGORY
    try:
        tip = pick_tip_by_category(category)
    except NotFound:
        logger.warning(f"No tip found for category '{category}'")
        return _response(turn, NO_TIP_MESSAGE)
    return _tell_tip(turn, tip, SEND_DAILY_SUGGESTION, "daily_notification_asked")


def handle_tell_latest_tip(turn: Turn) -> dict:
    try:
        tip = get_most_recent_tip()
    except NotFound:
        logger.warning("No tips available for the latest tip intent")
        return _response(turn, NO_TIP_MESSAGE)
    return _tell_tip(turn, tip, ALERT_ME_SUGGESTION, "push_notification_asked")


def handle_setup_push(turn: Turn) -> dict:
    permission = request_push_permission(turn.session, TELL_LATEST_TIP_INTENT)
    return _response(
        turn,
        "",
        expect_user_response=True,
        system_intent={"type": "permission", **asdict(permission)},
    )


def handle_finish_push_setup(turn: Turn) -> dict:
    granted = bool(turn.arguments.get(PERMISSION_ARGUMENT))
    try:
        result = complete_push_setup(turn.session, granted, turn.user_id)
    except (StoreUnavailable, ValueError) as e:
        logger.error(f"Error finishing push setup: {e}")
        return _response(turn, FAILURE_MESSAGE)

    if result == OptInState.GRANTED:
        return _response(turn, "Ok, I'll start alerting you.")
    return _response(turn, "Ok, I won't alert you.")


def handle_setup_update(turn: Turn) -> dict:
    category = turn.parameters.get(CATEGORY_PARAMETER) or RANDOM_CATEGORY
    registration = request_daily_update(turn.session, TELL_TIP_INTENT, category)
    return _response(
        turn,
        "",
        expect_user_response=True,
        system_intent={"type": "register_update", **asdict(registration)},
    )


def handle_finish_update_setup(turn: Turn) -> dict:
    result = complete_daily_update_setup(
        turn.session, turn.arguments.get(REGISTER_UPDATE_ARGUMENT)
    )
    if result == OptInState.GRANTED:
        return _response(turn, "Ok, I'll start giving you daily updates.")
    return _response(turn, "Ok, I won't give you daily updates.")


INTENT_HANDLERS: Dict[str, Callable[[Turn], dict]] = {
    WELCOME_INTENT: handle_welcome,
    TELL_TIP_INTENT: handle_tell_tip,
    TELL_LATEST_TIP_INTENT: handle_tell_latest_tip,
    SETUP_PUSH_INTENT: handle_setup_push,
    FINISH_PUSH_SETUP_INTENT: handle_finish_push_setup,
    SETUP_UPDATE_INTENT: handle_setup_update,
    FINISH_UPDATE_SETUP_INTENT: handle_finish_update_setup,
}


def handle_turn(request_data: dict) -> dict:
    """
    Given a webhook request with a resolved intent,
    perform the appropriate action and build the response
    """
    return respond_to_turn(Turn(request_data))


def respond_to_turn(turn: Turn) -> dict:
    log_turn_received(logger, turn.intent, turn.user_id, turn.parameters)

    handler = INTENT_HANDLERS.get(turn.intent)
    if handler is None:
        response = _response(turn, UNKNOWN_INTENT_MESSAGE)
    else:
        try:
            response = handler(turn)
        except StoreUnavailable as e:
            logger.error(f"Store unavailable handling '{turn.intent}': {e}")
            response = _response(turn, FAILURE_MESSAGE)

    log_turn_response(logger, turn.intent, response["speech"], response["expect_user_response"])
    return response
