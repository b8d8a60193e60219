# app/domains/missions/models.py
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.mixins import TimestampMixin
from app.shared.models.base import Base

from .entities import RoundStatus


class MissionRound(Base, TimestampMixin):
    __tablename__ = "mission_rounds"
    __table_args__ = (
        UniqueConstraint("connection_id", "number", name="uq_mission_round_number"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    connection_id: Mapped[str] = mapped_column(String, ForeignKey("connections.id"), index=True)
    number: Mapped[int] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(String, default=RoundStatus.VOTING.value, index=True)
    option_ids: Mapped[list] = mapped_column(JSON, default=list)
    selected_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    # user_id -> template id / response payload
    votes: Mapped[dict] = mapped_column(JSON, default=dict)
    responses: Mapped[dict] = mapped_column(JSON, default=dict)
    voting_ends_at: Mapped[datetime] = mapped_column(DateTime)
    mission_ends_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
