# app/domains/connections/models.py
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.mixins import TimestampMixin
from app.shared.models.base import Base

from .entities import ChatLevel, ConnectionStatus


class Connection(Base, TimestampMixin):
    __tablename__ = "connections"
    __table_args__ = (
        Index("ix_connections_initiator_status", "initiator_id", "status"),
        Index("ix_connections_receiver_status", "receiver_id", "status"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    initiator_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"))
    receiver_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"))

    # Sorted "a:b"; open_pair_key is NULL once ENDED so the pair may reconnect
    pair_key: Mapped[str] = mapped_column(String, index=True)
    open_pair_key: Mapped[Optional[str]] = mapped_column(String, unique=True, nullable=True)

    status: Mapped[str] = mapped_column(String, default=ConnectionStatus.PENDING.value)
    cooled_from: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    progress: Mapped[int] = mapped_column(Integer, default=0)
    chat_level: Mapped[str] = mapped_column(String, default=ChatLevel.NONE.value)
    compatibility_score: Mapped[int] = mapped_column(Integer, default=0)
    seen_by_receiver: Mapped[bool] = mapped_column(Boolean, default=False)

    last_activity: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    ended_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    ended_by: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    decline_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    dissolve_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def other_user_id(self, user_id: str) -> str:
        return self.receiver_id if user_id == self.initiator_id else self.initiator_id

    def is_participant(self, user_id: str) -> bool:
        return user_id in (self.initiator_id, self.receiver_id)
