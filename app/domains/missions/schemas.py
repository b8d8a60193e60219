from typing import Any

from app.shared.schemas.base import CamelModel


class MissionVoteRequest(CamelModel):
    round_id: str
    mission_template_id: str


class MissionResponseRequest(CamelModel):
    round_id: str
    response: Any


class MissionSkipRequest(CamelModel):
    round_id: str
