# app/domains/nucleus/models.py
from typing import Optional

from sqlalchemy import JSON, Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.mixins import TimestampMixin
from app.shared.models.base import Base

from .entities import GameStatus


class ActivityRecord(Base, TimestampMixin):
    """One user's submission of one activity unit. Append-only."""

    __tablename__ = "activity_records"
    __table_args__ = (
        UniqueConstraint("connection_id", "category", "key", "user_id", name="uq_activity_submission"),
        Index("ix_activity_connection_category", "connection_id", "category"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    connection_id: Mapped[str] = mapped_column(String, ForeignKey("connections.id"))
    category: Mapped[str] = mapped_column(String)
    key: Mapped[str] = mapped_column(String)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"))
    payload: Mapped[dict] = mapped_column(JSON, default=dict)
    both_completed: Mapped[bool] = mapped_column(Boolean, default=False)


class MiniGame(Base, TimestampMixin):
    __tablename__ = "mini_games"
    __table_args__ = (
        UniqueConstraint("connection_id", "type", name="uq_mini_game_type"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    connection_id: Mapped[str] = mapped_column(String, ForeignKey("connections.id"), index=True)
    type: Mapped[str] = mapped_column(String)
    status: Mapped[str] = mapped_column(String, default=GameStatus.PENDING.value)
    started_by: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    # user_id -> that player's state for this game
    state: Mapped[dict] = mapped_column(JSON, default=dict)
