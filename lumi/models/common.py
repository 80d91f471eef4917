"""
Shared model types
FILE: lumi/models/common.py
"""
from typing import Any, Dict, Literal, Optional, get_args

from pydantic import BaseModel, Field


Difficulty = Literal["beginner", "intermediate", "advanced"]
DIFFICULTIES = get_args(Difficulty)


class AuxiliaryOutcome(BaseModel):
    """
    Result of a best-effort side effect (progress row, XP award)

    The primary operation succeeds regardless; this records whether the
    auxiliary write happened so callers and tests can check it directly.
    """
    ok: bool = Field(..., description="False when the side effect failed")
    skipped: bool = Field(default=False, description="True when there was nothing to do")
    error: Optional[str] = Field(default=None, description="Failure message")
    detail: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def success(cls, **detail) -> "AuxiliaryOutcome":
        return cls(ok=True, detail=detail)

    @classmethod
    def skip(cls, reason: str) -> "AuxiliaryOutcome":
        return cls(ok=True, skipped=True, detail={"reason": reason})

    @classmethod
    def failure(cls, error: str) -> "AuxiliaryOutcome":
        return cls(ok=False, error=error)
