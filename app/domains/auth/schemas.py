from datetime import date
from typing import List, Optional

from pydantic import Field, field_validator

from app.shared.schemas.base import CamelModel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class RegisterRequest(CamelModel):
    email: str = Field(pattern=EMAIL_PATTERN)
    password: str = Field(min_length=6, max_length=128)
    name: str = Field(min_length=1, max_length=80)
    birth_date: Optional[date] = None
    gender: Optional[str] = None
    interested_in: List[str] = Field(default_factory=list)
    interests: List[str] = Field(default_factory=list)
    looking_for: List[str] = Field(default_factory=list)
    values: List[str] = Field(default_factory=list)
    bio: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty")
        return v


class LoginRequest(CamelModel):
    email: str = Field(pattern=EMAIL_PATTERN)
    password: str


class UserOut(CamelModel):
    id: str
    email: str
    name: str
    birth_date: Optional[date] = None
    gender: Optional[str] = None
    interested_in: List[str] = Field(default_factory=list)
    interests: List[str] = Field(default_factory=list)
    looking_for: List[str] = Field(default_factory=list)
    values: List[str] = Field(default_factory=list)
    bio: Optional[str] = None
    photos: List[str] = Field(default_factory=list)
    location: Optional[str] = None
    city: Optional[str] = None


class TokenResponse(CamelModel):
    token: str
    token_type: str = "bearer"
    user: UserOut
