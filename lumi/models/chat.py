"""
Chat Models
FILE: lumi/models/chat.py
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from lumi.models.common import AuxiliaryOutcome
from lumi.prompts.personas import Persona


class ChatRequest(BaseModel):
    """A student message to the tutor"""
    user_id: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    topic: Optional[str] = None
    persona: Optional[Persona] = None
    context: List[str] = Field(default_factory=list)
    model: Optional[str] = None


class ChatResult(BaseModel):
    """Tutor reply and the stored chat_history row it produced"""
    reply: str
    xp_gained: int
    message_id: str
    timestamp: Optional[str] = None
    role: str = Field(..., description="Role label the store accepted")
    xp_award: AuxiliaryOutcome
