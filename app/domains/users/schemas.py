from datetime import date
from typing import List, Optional

from pydantic import Field

from app.shared.schemas.base import CamelModel


class ProfileUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=80)
    birth_date: Optional[date] = None
    gender: Optional[str] = None
    interested_in: Optional[List[str]] = None
    interests: Optional[List[str]] = None
    looking_for: Optional[List[str]] = None
    values: Optional[List[str]] = None
    bio: Optional[str] = Field(default=None, max_length=1000)
    photos: Optional[List[str]] = None
    location: Optional[str] = None
    city: Optional[str] = None


class PublicProfile(CamelModel):
    id: str
    name: str
    birth_date: Optional[date] = None
    gender: Optional[str] = None
    interests: List[str] = Field(default_factory=list)
    looking_for: List[str] = Field(default_factory=list)
    values: List[str] = Field(default_factory=list)
    bio: Optional[str] = None
    photos: List[str] = Field(default_factory=list)
    city: Optional[str] = None
    compatibility_score: Optional[int] = None
    shared_interests: List[dict] = Field(default_factory=list)
