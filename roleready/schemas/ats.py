from __future__ import annotations

from pydantic import BaseModel

from roleready.schemas.scoring import ATSScoreResult


class ATSCalculateRequest(BaseModel):
    role_id: str | None = None


class ATSScoreOut(ATSScoreResult):
    user_id: str
    role_id: str
    role_name: str
    resume_id: str
    calculated_at: str
    is_outdated: bool = False
