"""
SQLAlchemy ORM models for the tips backend.

These models are internal to the database layer. The public interface
uses the dataclass models from models.py.
"""

import json
from typing import Optional

from sqlalchemy import Index, Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from tips.models import Subscription, Tip


class JSONEncodedDict(TypeDecorator):
    """Represents a dict as a JSON-encoded string."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Optional[dict], dialect) -> Optional[str]:
        if value is None or value == {}:
            return None
        return json.dumps(value)

    def process_result_value(self, value: Optional[str], dialect) -> dict:
        if value is None:
            return {}
        return json.loads(value)


class Base(DeclarativeBase):
    pass


class TipORM(Base):
    """SQLAlchemy model for tips table."""

    __tablename__ = "tips"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tip: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        Index("idx_tips_category", "category"),
        Index("idx_tips_created_at", "created_at"),
    )


class SubscriptionORM(Base):
    """SQLAlchemy model for subscriptions table."""

    __tablename__ = "subscriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    intent: Mapped[str] = mapped_column(Text, nullable=False)
    args: Mapped[dict] = mapped_column(JSONEncodedDict, nullable=True)

    __table_args__ = (
        Index("idx_subscriptions_intent", "intent"),
    )


def tip_orm_to_dataclass(orm: TipORM) -> Tip:
    """Convert a TipORM instance to a Tip dataclass."""
    return Tip(
        id=orm.id,
        text=orm.tip,
        url=orm.url,
        category=orm.category,
        created_at=orm.created_at,
    )


def tip_dataclass_to_orm(tip: Tip, created_at: int) -> TipORM:
    """Convert a Tip dataclass to a TipORM instance."""
    return TipORM(
        tip=tip.text,
        url=tip.url,
        category=tip.category,
        created_at=created_at,
    )


def subscription_orm_to_dataclass(orm: SubscriptionORM) -> Subscription:
    """Convert a SubscriptionORM instance to a Subscription dataclass."""
    return Subscription(
        id=orm.id,
        user_id=orm.user_id,
        intent=orm.intent,
        args=orm.args or {},
    )
