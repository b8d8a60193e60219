# app/domains/places/models.py
from typing import Optional

from sqlalchemy import Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.mixins import TimestampMixin
from app.shared.models.base import Base


class PlaceSuggestion(Base, TimestampMixin):
    __tablename__ = "place_suggestions"
    __table_args__ = (
        UniqueConstraint("connection_id", "place_id", name="uq_place_suggestion"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    connection_id: Mapped[str] = mapped_column(String, ForeignKey("connections.id"), index=True)
    suggested_by: Mapped[str] = mapped_column(String, ForeignKey("users.id"))
    place_id: Mapped[str] = mapped_column(String)
    name: Mapped[str] = mapped_column(String)
    address: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    photo_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    price_level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class PlaceVote(Base, TimestampMixin):
    __tablename__ = "place_votes"
    __table_args__ = (
        UniqueConstraint("suggestion_id", "user_id", name="uq_place_vote"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    suggestion_id: Mapped[str] = mapped_column(String, ForeignKey("place_suggestions.id"), index=True)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"))
    vote: Mapped[str] = mapped_column(String)
