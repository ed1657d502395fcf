"""
Fans a "new tip" push notification out to every subscriber.

Runs once per tip-created event. The token exchange happens first and is the
only step every delivery waits on; deliveries are then submitted to a thread
pool and none of them waits on, cancels or is ordered after another. The
results are only joined for logging.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional

from notifications.push import get_access_token, send_push_notification
from tips.constants import TELL_LATEST_TIP_INTENT
from tips.database import get_subscriptions_by_intent
from tips.errors import DeliveryFailed
from tips.models import DeliveryResult, DispatchReport, Subscription, Tip
from util.logging_util import setup_logger

logger = setup_logger(__name__)


def _deliver(access_token: str, subscription: Subscription) -> DeliveryResult:
    try:
        response = send_push_notification(access_token, subscription)
    except DeliveryFailed as e:
        return DeliveryResult(
            user_id=subscription.user_id,
            intent=subscription.intent,
            ok=False,
            error=str(e),
        )
    return DeliveryResult(
        user_id=subscription.user_id,
        intent=subscription.intent,
        ok=response.ok,
        status_code=response.status_code,
        error=None if response.ok else f"{response.status_code}: {response.reason}",
    )


def dispatch_latest_tip_notifications(tip: Optional[Tip] = None) -> DispatchReport:
    """Notify every subscriber of the latest-tip intent about a new tip.

    Args:
        tip: The tip that was just created (only used for reporting)

    Returns:
        A report with one DeliveryResult per subscriber

    Raises:
        CredentialExchangeFailed: before any delivery is attempted
        StoreUnavailable: if the subscriptions can't be read
    """
    tip_id = tip.id if tip is not None else None
    report = DispatchReport(tip_id=tip_id)

    access_token = get_access_token()

    subscriptions = get_subscriptions_by_intent(TELL_LATEST_TIP_INTENT)
    if not subscriptions:
        logger.info("No subscribers for %s, nothing to send", TELL_LATEST_TIP_INTENT)
        return report

    logger.info(
        "Dispatching tip %s to %d subscriber(s)", tip_id, len(subscriptions)
    )

    # One worker per subscriber, deliveries never wait for a free slot
    with ThreadPoolExecutor(max_workers=len(subscriptions)) as executor:
        futures = {
            executor.submit(_deliver, access_token, subscription): subscription
            for subscription in subscriptions
        }
        for future in as_completed(futures):
            subscription = futures[future]
            try:
                result = future.result()
            except Exception as e:
                logger.exception("Unexpected error delivering to %s", subscription.user_id)
                result = DeliveryResult(
                    user_id=subscription.user_id,
                    intent=subscription.intent,
                    ok=False,
                    error=str(e),
                )
            if not result.ok:
                logger.warning("Delivery to %s failed: %s", result.user_id, result.error)
            report.results.append(result)

    logger.info(
        "Dispatch for tip %s finished: %d delivered, %d failed",
        tip_id, report.delivered, report.failed,
    )
    return report
