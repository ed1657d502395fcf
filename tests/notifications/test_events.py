"""Tests for tip-created event payload parsing."""

import base64
import json

import pytest
from sqlalchemy import create_engine

from notifications.events import tip_from_event_data
from tips import db_engine
from tips.errors import NotFound
from tips.models import Tip
from tips.orm_models import Base


@pytest.fixture
def temp_db():
    """Create a temporary in-memory database for testing."""
    test_engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(test_engine)
    db_engine.set_engine(test_engine)
    yield test_engine
    db_engine.reset_engine()


TIP_FIELDS = {
    "id": 7,
    "tip": "Use suggestion chips.",
    "url": "https://example.com/chips",
    "category": "design",
    "created_at": 1700000000,
}


class TestTipFromEventData:
    def test_plain_json(self):
        tip = tip_from_event_data(TIP_FIELDS)

        assert tip == Tip(
            id=7,
            text="Use suggestion chips.",
            url="https://example.com/chips",
            category="design",
            created_at=1700000000,
        )

    def test_json_bytes(self):
        tip = tip_from_event_data(json.dumps(TIP_FIELDS).encode("utf-8"))

        assert tip.id == 7

    def test_pubsub_envelope(self):
        encoded = base64.b64encode(json.dumps(TIP_FIELDS).encode("utf-8")).decode("ascii")

        tip = tip_from_event_data({"message": {"data": encoded}})

        assert tip.category == "design"
        assert tip.text == "Use suggestion chips."

    def test_id_only_resolved_from_database(self, temp_db):
        from tips.database import insert_tip

        tip_id = insert_tip(Tip(text="Stored tip", url="u", category="voice", created_at=5))

        tip = tip_from_event_data({"id": tip_id})

        assert tip.text == "Stored tip"

    def test_id_only_missing_tip(self, temp_db):
        with pytest.raises(NotFound):
            tip_from_event_data({"id": 12345})

    def test_empty_payload(self):
        with pytest.raises(ValueError):
            tip_from_event_data({})
