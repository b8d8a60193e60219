from enum import Enum
from typing import Optional

from pydantic import Field

from app.shared.schemas.base import CamelModel


class PlaceVoteValue(str, Enum):
    LOVE = "LOVE"
    LIKE = "LIKE"
    NEUTRAL = "NEUTRAL"
    DISLIKE = "DISLIKE"


class LocationUpdate(CamelModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    city: Optional[str] = Field(default=None, max_length=120)
    location: Optional[str] = Field(default=None, max_length=200)


class SuggestPlaceRequest(CamelModel):
    place_id: Optional[str] = None
    name: str = Field(min_length=1, max_length=200)
    address: Optional[str] = None
    category: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    photo_url: Optional[str] = None
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    price_level: Optional[int] = Field(default=None, ge=0, le=4)


class PlaceVoteRequest(CamelModel):
    vote: PlaceVoteValue
