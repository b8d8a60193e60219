from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

from app.core.config import settings


class ConnectionStatus(str, Enum):
    PENDING = "PENDING"
    LATER = "LATER"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    COOLED = "COOLED"
    ENDED = "ENDED"


class ChatLevel(str, Enum):
    NONE = "NONE"
    LIMITED = "LIMITED"
    UNLIMITED = "UNLIMITED"


class Temperature(str, Enum):
    HOT = "HOT"
    WARM = "WARM"
    COOL = "COOL"
    COLD = "COLD"


class ConnectionAction(str, Enum):
    ACCEPT = "accept"
    DECLINE = "decline"
    POSTPONE = "postpone"
    DISSOLVE = "dissolve"
    COMPLETE = "complete"
    REACTIVATE = "reactivate"
    COOL = "cool"
    EXPIRE = "expire"


S = ConnectionStatus

# action -> (statuses it is legal from, COOLED sub-state it accepts, target)
TRANSITIONS: Dict[ConnectionAction, Tuple[FrozenSet[S], Optional[S], S]] = {
    ConnectionAction.ACCEPT: (frozenset({S.PENDING, S.LATER}), S.LATER, S.ACTIVE),
    ConnectionAction.DECLINE: (frozenset({S.PENDING, S.LATER}), S.LATER, S.ENDED),
    ConnectionAction.POSTPONE: (frozenset({S.PENDING}), None, S.LATER),
    ConnectionAction.DISSOLVE: (frozenset({S.ACTIVE, S.COMPLETED}), S.ACTIVE, S.ENDED),
    ConnectionAction.COMPLETE: (frozenset({S.ACTIVE}), S.ACTIVE, S.COMPLETED),
    ConnectionAction.REACTIVATE: (frozenset(), S.ACTIVE, S.ACTIVE),
    ConnectionAction.COOL: (frozenset({S.ACTIVE, S.LATER}), None, S.COOLED),
    ConnectionAction.EXPIRE: (frozenset({S.COOLED}), None, S.ENDED),
}

# Statuses in which the nucleus accepts activity
NUCLEUS_OPEN = frozenset({S.ACTIVE, S.COMPLETED})


def can_transition(status: str, action: ConnectionAction, cooled_from: Optional[str] = None) -> bool:
    allowed, cooled_ok, _ = TRANSITIONS[action]
    if status in allowed:
        return True
    return status == S.COOLED and cooled_ok is not None and cooled_from == cooled_ok


def nucleus_open(status: str, cooled_from: Optional[str] = None) -> bool:
    return status in NUCLEUS_OPEN or (status == S.COOLED and cooled_from == S.ACTIVE)


def pair_key(user_a: str, user_b: str) -> str:
    """Order-independent key for an unordered pair of users"""
    first, second = sorted((user_a, user_b))
    return f"{first}:{second}"


def temperature_for(last_activity: Optional[datetime], now: Optional[datetime] = None) -> Temperature:
    if last_activity is None:
        return Temperature.COLD
    hours = ((now or datetime.utcnow()) - last_activity).total_seconds() / 3600
    if hours < settings.TEMPERATURE_HOT_HOURS:
        return Temperature.HOT
    if hours < settings.TEMPERATURE_WARM_HOURS:
        return Temperature.WARM
    if hours < settings.TEMPERATURE_COOL_HOURS:
        return Temperature.COOL
    return Temperature.COLD
