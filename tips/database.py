"""
Database operations for the tips backend.

Covers the read-only tip repository and the append-only subscription store.
Uses SQLAlchemy ORM for database access. The public API uses dataclass models
from models.py, with conversion to/from ORM models handled internally.
"""

import random
import time
from typing import List, Optional

from sqlalchemy import func, select

from tips.constants import RANDOM_CATEGORY, RECENT_TIP
from tips.db_engine import get_engine, get_session
from tips.errors import NotFound
from tips.models import Subscription, Tip
from tips.orm_models import (
    Base,
    SubscriptionORM,
    TipORM,
    subscription_orm_to_dataclass,
    tip_dataclass_to_orm,
    tip_orm_to_dataclass,
)


def init_db():
    """Initialize the database schema."""
    engine = get_engine()
    Base.metadata.create_all(engine)


# Tips


def insert_tip(tip: Tip) -> int:
    """Insert a new tip into the database.

    Returns the tip id.
    """
    if tip.category == RANDOM_CATEGORY:
        raise ValueError(f"'{RANDOM_CATEGORY}' is reserved and cannot be used as a category")

    created_at = tip.created_at or int(time.time())
    orm = tip_dataclass_to_orm(tip, created_at)

    with get_session() as session:
        session.add(orm)
        session.flush()
        return orm.id


def get_tip_by_id(tip_id: int) -> Optional[Tip]:
    """Get a tip by its database ID."""
    with get_session() as session:
        orm = session.get(TipORM, tip_id)
        if orm is None:
            return None
        return tip_orm_to_dataclass(orm)


def pick_tip_by_category(category: str) -> Tip:
    """Pick a tip uniformly at random, either from one category or from all.

    Passing the random sentinel draws from the whole collection.

    Raises:
        NotFound: if there is no tip to pick from
    """
    stmt = select(TipORM)
    if category != RANDOM_CATEGORY:
        stmt = stmt.where(TipORM.category == category)

    with get_session() as session:
        orms = session.execute(stmt).scalars().all()
        if not orms:
            raise NotFound(f"No tips found for category '{category}'")
        return tip_orm_to_dataclass(random.choice(orms))


def get_most_recent_tip() -> Tip:
    """Get the most recently created tip.

    Ties on created_at go to the later insert.

    Raises:
        NotFound: if there are no tips
    """
    with get_session() as session:
        stmt = (
            select(TipORM)
            .order_by(TipORM.created_at.desc(), TipORM.id.desc())
            .limit(1)
        )
        orm = session.execute(stmt).scalar_one_or_none()
        if orm is None:
            raise NotFound("No tips in the database")
        return tip_orm_to_dataclass(orm)


def list_categories() -> List[str]:
    """List the categories a user can pick from.

    The most recent pseudo-category comes first and the random sentinel last,
    with the real categories in first-seen order in between.
    """
    with get_session() as session:
        stmt = select(TipORM.category).order_by(TipORM.id.asc())
        categories = session.execute(stmt).scalars().all()

    unique_categories = list(dict.fromkeys(
        c for c in categories if c not in (RANDOM_CATEGORY, RECENT_TIP)
    ))
    return [RECENT_TIP, *unique_categories, RANDOM_CATEGORY]


def count_tips() -> int:
    """Count total number of tips."""
    with get_session() as session:
        return session.execute(select(func.count()).select_from(TipORM)).scalar_one()


# Subscriptions


def add_subscription(user_id: str, intent: str, args: Optional[dict] = None) -> int:
    """Append a subscription record.

    No existence check is made, so repeated calls create duplicates.

    Returns the subscription id.
    """
    orm = SubscriptionORM(user_id=user_id, intent=intent, args=args or {})

    with get_session() as session:
        session.add(orm)
        session.flush()
        return orm.id


def get_subscriptions_by_intent(intent: str) -> List[Subscription]:
    """Get every subscription for an intent, in no particular order."""
    with get_session() as session:
        stmt = select(SubscriptionORM).where(SubscriptionORM.intent == intent)
        orms = session.execute(stmt).scalars().all()
        return [subscription_orm_to_dataclass(orm) for orm in orms]


def count_subscriptions() -> int:
    """Count total number of subscriptions."""
    with get_session() as session:
        return session.execute(
            select(func.count()).select_from(SubscriptionORM)
        ).scalar_one()
