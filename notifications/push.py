"""
Calls to the external push API: token exchange and single deliveries.
"""

import threading
import time
from typing import Optional

import google.api_core.exceptions
import google.auth.exceptions
import google.auth.transport.requests
import requests
from google.oauth2 import service_account

from gcp_util.secrets import get_service_account_info
from tips.constants import PUSH_ENDPOINT, PUSH_NOTIFICATION_TITLE, PUSH_SCOPES, PUSH_TIMEOUT_SECONDS
from tips.errors import CredentialExchangeFailed, DeliveryFailed
from tips.models import Subscription
from util.constants import PUSH_IN_SANDBOX
from util.logging_util import log_push_delivery, setup_logger

logger = setup_logger(__name__)

_credentials: Optional[service_account.Credentials] = None
_credentials_lock = threading.Lock()


def get_credentials() -> service_account.Credentials:
    """Get the service account credentials, loading them once per process."""
    global _credentials
    if _credentials is None:
        with _credentials_lock:
            if _credentials is None:
                _credentials = service_account.Credentials.from_service_account_info(
                    get_service_account_info(), scopes=PUSH_SCOPES
                )
    return _credentials


def reset_credentials() -> None:
    """Forget the loaded credentials (for testing)."""
    global _credentials
    with _credentials_lock:
        _credentials = None


def get_access_token() -> str:
    """Exchange the service account key for a bearer token.

    Raises:
        CredentialExchangeFailed: if the key can't be loaded or exchanged
    """
    try:
        credentials = get_credentials()
        credentials.refresh(google.auth.transport.requests.Request())
    except (
        google.auth.exceptions.GoogleAuthError,
        google.api_core.exceptions.GoogleAPIError,
        ValueError,
        KeyError,
        OSError,
    ) as e:
        raise CredentialExchangeFailed(f"Auth error: {e}") from e

    if not credentials.token:
        raise CredentialExchangeFailed("Auth error: no access token returned")
    return credentials.token


def build_push_message(subscription: Subscription, in_sandbox: bool = PUSH_IN_SANDBOX) -> dict:
    """Build the request body notifying one subscriber."""
    return {
        "customPushMessage": {
            "userNotification": {
                "title": PUSH_NOTIFICATION_TITLE,
            },
            "target": {
                "userId": subscription.user_id,
                "intent": subscription.intent,
            },
        },
        "isInSandbox": in_sandbox,
    }


def send_push_notification(access_token: str, subscription: Subscription) -> requests.Response:
    """Send one push notification.

    The response status and body are logged, not otherwise acted upon.

    Raises:
        DeliveryFailed: if the request couldn't be made
    """
    start = time.monotonic()
    try:
        response = requests.post(
            PUSH_ENDPOINT,
            json=build_push_message(subscription),
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=PUSH_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        raise DeliveryFailed(subscription.user_id, f"API request error: {e}") from e

    duration_ms = (time.monotonic() - start) * 1000
    log_push_delivery(
        logger, subscription.user_id, response.status_code, response.reason or "",
        response.text, duration_ms,
    )
    return response
