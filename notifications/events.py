"""
Parsing of tip-created event payloads.

The event data is either the tip itself as JSON, or a Pub/Sub push envelope
whose message data is the base64 encoded tip.
"""

import base64
import json

from tips.database import get_tip_by_id
from tips.errors import NotFound
from tips.models import Tip


def decode_event_data(data) -> dict:
    if isinstance(data, (bytes, str)):
        data = json.loads(data)
    if "message" in data:
        encoded = data["message"].get("data", "")
        data = json.loads(base64.b64decode(encoded).decode("utf-8"))
    return data


def tip_from_event_data(data) -> Tip:
    """Build the created tip from an event payload.

    Payloads carrying only an id are resolved against the database.
    """
    fields = decode_event_data(data)

    tip_id = fields.get("id")
    text = fields.get("tip", fields.get("text"))
    if text is None:
        if tip_id is None:
            raise ValueError(f"Tip event has neither an id nor tip text: {fields}")
        tip = get_tip_by_id(int(tip_id))
        if tip is None:
            raise NotFound(f"Tip {tip_id} from event not found")
        return tip

    return Tip(
        id=int(tip_id) if tip_id is not None else None,
        text=text,
        url=fields.get("url", ""),
        category=fields.get("category", ""),
        created_at=int(fields.get("created_at", 0)),
    )
