"""
Tool Argument Models
Input validation for the generate_lesson / generate_quiz / chat_with_student tools
FILE: lumi/models/tools.py
"""
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from lumi.models.common import Difficulty
from lumi.prompts.personas import Persona


class _ToolArgs(BaseModel):
    class Config:
        populate_by_name = True
        extra = "forbid"

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Treat empty strings as omitted"""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class GenerateLessonArgs(_ToolArgs):
    """Arguments for generate_lesson; anything missing is inferred from `prompt`"""
    userId: Optional[str] = Field(default=None, description="Supabase user id")
    subject: Optional[str] = Field(default=None, description="Lesson subject")
    topic: Optional[str] = Field(default=None, description="Lesson topic")
    difficulty: Optional[Difficulty] = Field(default=None, description="Lesson difficulty")
    duration: Optional[int] = Field(default=None, gt=0, description="Estimated duration in minutes")
    prompt: Optional[str] = Field(default=None, description="Free-text learning request")
    persona: Optional[Persona] = Field(default=None, description="Tutor persona override")
    model: Optional[str] = Field(default=None, description="Gemini model override for this request")

    class Config:
        json_schema_extra = {
            "example": {
                "userId": "6f1c7f1e-2b1d-4d7e-9a43-1b2f5b8f0c11",
                "subject": "Math",
                "topic": "Algebra",
                "difficulty": "beginner",
                "duration": 30
            }
        }


class GenerateQuizArgs(_ToolArgs):
    """Arguments for generate_quiz; without lessonId a lesson is generated first"""
    userId: Optional[str] = Field(default=None, description="Supabase user id")
    lessonId: Optional[str] = Field(default=None, description="Lesson id to build the quiz from")
    subject: Optional[str] = Field(default=None, description="Subject for a new lesson")
    topic: Optional[str] = Field(default=None, description="Topic for a new lesson")
    difficulty: Optional[Difficulty] = Field(default=None, description="Target quiz difficulty")
    numQuestions: Optional[int] = Field(
        default=None, ge=1, le=20, description="Number of quiz questions (default 5)"
    )
    prompt: Optional[str] = Field(default=None, description="Free-text learning request")
    persona: Optional[Persona] = Field(default=None, description="Tutor persona override")
    model: Optional[str] = Field(default=None, description="Gemini model override for this request")


class ChatWithStudentArgs(_ToolArgs):
    """Arguments for chat_with_student"""
    userId: str = Field(..., min_length=1, description="Supabase user id")
    message: str = Field(..., min_length=1, description="Student message to respond to")
    topic: Optional[str] = Field(default=None, description="Optional conversation topic")
    persona: Optional[Persona] = Field(default=None, description="Tutor persona override")
    context: Optional[List[str]] = Field(default=None, description="Optional context messages")
    model: Optional[str] = Field(default=None, description="Gemini model override for this request")
