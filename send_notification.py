#!/usr/bin/env python3
"""
Entrypoint for re-sending the latest tip push notification by hand.

Usage:
    python send_notification.py            # most recent tip
    python send_notification.py <tip_id>   # a specific tip

Or import and use programmatically:
    from send_notification import notify
    notify()
"""
import sys
from typing import Optional

from notifications.dispatcher import dispatch_latest_tip_notifications
from tips.database import get_most_recent_tip, get_tip_by_id, init_db
from tips.errors import NotFound
from tips.models import DispatchReport


def notify(tip_id: Optional[int] = None) -> DispatchReport:
    """Notify every latest-tip subscriber about a tip.

    Raises:
        NotFound: if there is no such tip (or no tips at all)
    """
    init_db()
    tip = get_most_recent_tip() if tip_id is None else get_tip_by_id(tip_id)
    if tip is None:
        raise NotFound(f"No tip with id {tip_id}")
    return dispatch_latest_tip_notifications(tip)


if __name__ == "__main__":
    if len(sys.argv) > 2:
        print("Usage: python send_notification.py [tip_id]")
        sys.exit(1)

    try:
        report = notify(int(sys.argv[1]) if len(sys.argv) == 2 else None)
    except NotFound as e:
        print(e)
        sys.exit(1)
    print(f"{report.delivered} delivered, {report.failed} failed")
