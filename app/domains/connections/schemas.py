from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from app.shared.schemas.base import CamelModel


class ConnectionCreate(CamelModel):
    target_user_id: str


class DeclineRequest(CamelModel):
    decline_reason: Optional[str] = Field(default=None, max_length=1000)


class DissolveRequest(CamelModel):
    reason: str = Field(max_length=4000)


class OtherUser(CamelModel):
    id: str
    name: str
    photos: List[str] = Field(default_factory=list)
    interests: List[str] = Field(default_factory=list)
    bio: Optional[str] = None
    city: Optional[str] = None


class ConnectionOut(CamelModel):
    id: str
    status: str
    progress: int
    chat_level: str
    temperature: str
    compatibility_score: int
    is_initiator: bool
    seen_by_receiver: bool
    initiator_id: str
    receiver_id: str
    other_user: Optional[OtherUser] = None
    last_activity: datetime
    created_at: datetime
    accepted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    ended_by: Optional[str] = None
    decline_reason: Optional[str] = None
    dissolve_reason: Optional[str] = None


class PendingCounts(CamelModel):
    pending: int = 0
    later: int = 0
    unseen: int = 0
    rejected: int = 0
    total: int = 0


class Transparency(CamelModel):
    who_liked_you: List[ConnectionOut] = Field(default_factory=list)
    who_you_liked: List[ConnectionOut] = Field(default_factory=list)
    active_matches: List[ConnectionOut] = Field(default_factory=list)
    rejections: List[ConnectionOut] = Field(default_factory=list)
    postponed: List[ConnectionOut] = Field(default_factory=list)
    cooled: List[ConnectionOut] = Field(default_factory=list)
    dissolved: List[ConnectionOut] = Field(default_factory=list)
    stats: Dict[str, int] = Field(default_factory=dict)
