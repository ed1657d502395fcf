"""Tests for the tip repository and subscription store."""

from unittest.mock import patch

import pytest
from sqlalchemy import create_engine, text

from tips import db_engine
from tips.constants import RANDOM_CATEGORY, RECENT_TIP
from tips.errors import NotFound, StoreUnavailable
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


@pytest.fixture
def sample_tips():
    """Tips across three categories, oldest first."""
    return [
        Tip(text="Use SSML to add pauses.", url="https://example.com/ssml", category="voice", created_at=100),
        Tip(text="Keep prompts short.", url="https://example.com/prompts", category="design", created_at=200),
        Tip(text="Test on a smart display.", url="https://example.com/display", category="voice", created_at=300),
        Tip(text="Log your webhook requests.", url="https://example.com/logs", category="webhook", created_at=250),
    ]


def _insert_all(tips):
    from tips.database import insert_tip

    return [insert_tip(t) for t in tips]


class TestInitDb:
    """Tests for database initialization."""

    def test_creates_tables(self, temp_db):
        """Test that init_db creates both tables."""
        with temp_db.connect() as conn:
            result = conn.execute(
                text("SELECT name FROM sqlite_master WHERE type='table'")
            )
            tables = {row[0] for row in result.fetchall()}

        assert "tips" in tables
        assert "subscriptions" in tables

    def test_idempotent(self, temp_db):
        """Test that init_db can be called multiple times safely."""
        from tips.database import init_db

        init_db()
        init_db()


class TestTipOperations:
    """Tests for inserting and reading tips."""

    def test_insert_and_get_tip(self, temp_db, sample_tips):
        from tips.database import get_tip_by_id, insert_tip

        tip_id = insert_tip(sample_tips[0])

        tip = get_tip_by_id(tip_id)
        assert tip is not None
        assert tip.id == tip_id
        assert tip.text == "Use SSML to add pauses."
        assert tip.url == "https://example.com/ssml"
        assert tip.category == "voice"
        assert tip.created_at == 100

    def test_insert_assigns_created_at(self, temp_db):
        from tips.database import get_tip_by_id, insert_tip

        tip_id = insert_tip(Tip(text="t", url="u", category="c"))

        assert get_tip_by_id(tip_id).created_at > 0

    def test_random_category_is_reserved(self, temp_db):
        from tips.database import count_tips, insert_tip

        with pytest.raises(ValueError):
            insert_tip(Tip(text="t", url="u", category=RANDOM_CATEGORY))
        assert count_tips() == 0

    def test_get_tip_not_found(self, temp_db):
        from tips.database import get_tip_by_id

        assert get_tip_by_id(999) is None


class TestPickTipByCategory:
    """Tests for category and random tip selection."""

    def test_pick_filters_by_category(self, temp_db, sample_tips):
        from tips.database import pick_tip_by_category

        _insert_all(sample_tips)

        for _ in range(20):
            assert pick_tip_by_category("voice").category == "voice"

    def test_pick_random_draws_from_all_tips(self, temp_db, sample_tips):
        from tips.database import pick_tip_by_category

        ids = set(_insert_all(sample_tips))
        candidates = []

        def choose_last(seq):
            candidates.extend(seq)
            return seq[-1]

        with patch("tips.database.random.choice", side_effect=choose_last):
            tip = pick_tip_by_category(RANDOM_CATEGORY)

        assert {c.id for c in candidates} == ids
        assert tip.id in ids

    def test_pick_unknown_category_raises(self, temp_db, sample_tips):
        from tips.database import pick_tip_by_category

        _insert_all(sample_tips)

        with pytest.raises(NotFound):
            pick_tip_by_category("does-not-exist")

    def test_pick_random_empty_raises(self, temp_db):
        from tips.database import pick_tip_by_category

        with pytest.raises(NotFound):
            pick_tip_by_category(RANDOM_CATEGORY)


class TestMostRecentTip:
    """Tests for most recent tip lookup."""

    def test_returns_max_created_at(self, temp_db, sample_tips):
        from tips.database import get_most_recent_tip

        _insert_all(sample_tips)

        assert get_most_recent_tip().text == "Test on a smart display."

    def test_tie_is_stable(self, temp_db):
        from tips.database import get_most_recent_tip, insert_tip

        insert_tip(Tip(text="first", url="u", category="c", created_at=500))
        second_id = insert_tip(Tip(text="second", url="u", category="c", created_at=500))

        picks = {get_most_recent_tip().id for _ in range(5)}
        assert picks == {second_id}

    def test_empty_raises(self, temp_db):
        from tips.database import get_most_recent_tip

        with pytest.raises(NotFound):
            get_most_recent_tip()


class TestListCategories:
    """Tests for the category listing."""

    def test_order_and_dedupe(self, temp_db, sample_tips):
        from tips.database import list_categories

        _insert_all(sample_tips)

        assert list_categories() == [RECENT_TIP, "voice", "design", "webhook", RANDOM_CATEGORY]

    def test_empty_collection(self, temp_db):
        from tips.database import list_categories

        assert list_categories() == [RECENT_TIP, RANDOM_CATEGORY]

    def test_most_recent_label_only_first(self, temp_db):
        from tips.database import insert_tip, list_categories

        insert_tip(Tip(text="t", url="u", category=RECENT_TIP))
        insert_tip(Tip(text="t", url="u", category="voice"))

        categories = list_categories()
        assert categories.count(RECENT_TIP) == 1
        assert categories[0] == RECENT_TIP
        assert categories[-1] == RANDOM_CATEGORY


class TestSubscriptions:
    """Tests for the subscription store."""

    def test_add_and_find_by_intent(self, temp_db):
        from tips.database import add_subscription, get_subscriptions_by_intent

        add_subscription("user-1", "tell_latest_tip")
        add_subscription("user-2", "tell_latest_tip")
        add_subscription("user-3", "tell_tip", {"category": "voice"})

        latest = get_subscriptions_by_intent("tell_latest_tip")
        assert {s.user_id for s in latest} == {"user-1", "user-2"}

        daily = get_subscriptions_by_intent("tell_tip")
        assert len(daily) == 1
        assert daily[0].args == {"category": "voice"}

    def test_duplicates_are_kept(self, temp_db):
        from tips.database import add_subscription, count_subscriptions

        first = add_subscription("user-1", "tell_latest_tip")
        second = add_subscription("user-1", "tell_latest_tip")

        assert first != second
        assert count_subscriptions() == 2

    def test_find_unknown_intent(self, temp_db):
        from tips.database import get_subscriptions_by_intent

        assert get_subscriptions_by_intent("nothing") == []

    def test_missing_schema_raises_store_unavailable(self):
        """A database without tables surfaces as StoreUnavailable."""
        from tips.database import add_subscription

        db_engine.set_engine(create_engine("sqlite:///:memory:"))
        try:
            with pytest.raises(StoreUnavailable):
                add_subscription("user-1", "tell_latest_tip")
        finally:
            db_engine.reset_engine()
