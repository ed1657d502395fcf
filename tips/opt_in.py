"""
Opt-in flows for push alerts and daily updates.

Each flow asks the platform once (PROMPTED) and then consumes the user's answer
(GRANTED or DENIED). Only a granted push permission is stored locally; daily
updates are scheduled by the platform itself, so nothing is written for them.
"""

import logging
from typing import Optional

from tips.constants import CATEGORY_PARAMETER, DAILY_FREQUENCY, TELL_LATEST_TIP_INTENT
from tips.database import add_subscription
from tips.models import (
    ConversationSession,
    OptInState,
    PermissionRequest,
    UpdateRegistration,
)

logger = logging.getLogger(__name__)

REGISTRATION_OK = "OK"


def request_push_permission(
    session: ConversationSession, target_intent: str = TELL_LATEST_TIP_INTENT
) -> PermissionRequest:
    """Start the push opt-in by asking for permission to push `target_intent`."""
    session.push_target_intent = target_intent
    session.push_opt_in = OptInState.PROMPTED
    return PermissionRequest(intent=target_intent)


def complete_push_setup(
    session: ConversationSession, granted: bool, user_id: str
) -> OptInState:
    """Finish the push opt-in.

    Stores a subscription for the requested intent when permission was
    granted. A StoreUnavailable from the write propagates to the caller.
    """
    if not granted:
        session.push_opt_in = OptInState.DENIED
        logger.info("Push permission declined")
        return OptInState.DENIED

    if not user_id:
        raise ValueError("A user id is required to store a push subscription")

    target_intent = session.push_target_intent or TELL_LATEST_TIP_INTENT
    subscription_id = add_subscription(user_id, target_intent)
    session.push_opt_in = OptInState.GRANTED
    logger.info(
        "Stored push subscription %d for intent %s", subscription_id, target_intent
    )
    return OptInState.GRANTED


def request_daily_update(
    session: ConversationSession, intent: str, category: str
) -> UpdateRegistration:
    """Start the daily-update opt-in for `intent`, fixed to one category."""
    session.daily_opt_in = OptInState.PROMPTED
    return UpdateRegistration(
        intent=intent,
        arguments=[{"name": CATEGORY_PARAMETER, "textValue": category}],
        frequency=DAILY_FREQUENCY,
    )


def complete_daily_update_setup(
    session: ConversationSession, registration_result: Optional[dict]
) -> OptInState:
    """Finish the daily-update opt-in from the platform's registration result."""
    if registration_result and registration_result.get("status") == REGISTRATION_OK:
        session.daily_opt_in = OptInState.GRANTED
    else:
        session.daily_opt_in = OptInState.DENIED
    logger.info("Daily update registration %s", session.daily_opt_in.value)
    return session.daily_opt_in
