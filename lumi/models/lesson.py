"""
Lesson Models
Pydantic models for lesson generation requests, LLM output and results
FILE: lumi/models/lesson.py
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from lumi.models.common import AuxiliaryOutcome, Difficulty
from lumi.prompts.personas import Persona


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _as_text_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [_as_text(item) for item in value if item is not None]
    return [_as_text(value)]


class GeneratedLessonContent(BaseModel):
    """
    Structured lesson returned by the model

    Missing text fields become "" and missing lists become [], so a
    partially filled response still formats.
    """
    introduction: str = ""
    objectives: List[str] = Field(default_factory=list)
    key_points: List[str] = Field(default_factory=list)
    detailed_content: str = ""
    summary: str = ""
    practice_exercises: List[str] = Field(default_factory=list)

    @field_validator("introduction", "detailed_content", "summary", mode="before")
    @classmethod
    def coerce_text(cls, v):
        return _as_text(v)

    @field_validator("objectives", "key_points", "practice_exercises", mode="before")
    @classmethod
    def coerce_lists(cls, v):
        return _as_text_list(v)

    class Config:
        json_schema_extra = {
            "example": {
                "introduction": "Algebra lets us reason about unknown quantities.",
                "objectives": ["Define a variable", "Solve one-step equations"],
                "key_points": ["Variables stand for numbers", "Balance both sides"],
                "detailed_content": "An equation states that two expressions are equal...",
                "summary": "Equations are solved by isolating the variable.",
                "practice_exercises": ["Solve x + 3 = 7"]
            }
        }


class LessonDetails(BaseModel):
    """Lesson parameters, either supplied by the caller or inferred from a prompt"""
    subject: str
    topic: str
    difficulty: Difficulty = "beginner"
    duration: int = Field(default=30, ge=15, le=120)
    num_questions: int = Field(default=5, ge=3, le=12)


class LessonGenerationRequest(BaseModel):
    """Input to the lesson generator"""
    user_id: str = Field(..., min_length=1)
    subject: str = Field(..., min_length=1)
    topic: str = Field(..., min_length=1)
    difficulty: Difficulty
    duration: int = Field(..., ge=0, description="Estimated duration in minutes")
    persona: Optional[Persona] = None
    model: Optional[str] = None


class LessonGenerationResult(BaseModel):
    """Saved lesson plus the outcome of its best-effort side effects"""
    lesson: Dict[str, Any]
    xp_reward: int
    message: str = "Lesson generated successfully"
    progress: AuxiliaryOutcome
    xp_award: AuxiliaryOutcome


class LessonCompletionResult(BaseModel):
    """Outcome of marking a lesson complete"""
    lesson_id: str
    xp_reward: int
    message: str = "Lesson completed"
    xp_award: AuxiliaryOutcome
