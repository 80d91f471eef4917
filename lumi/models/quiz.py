"""
Quiz Models
Pydantic models for generated quizzes
FILE: lumi/models/quiz.py
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from lumi.models.common import AuxiliaryOutcome, Difficulty
from lumi.prompts.personas import Persona


class QuizQuestion(BaseModel):
    """A single four-option multiple-choice question"""
    question: str = Field(..., description="Question text")
    options: List[str] = Field(..., description="Answer options (four expected)")
    correct_answer: str = Field(..., description="Text of the correct option")
    explanation: str = Field(default="", description="Why the answer is correct")

    class Config:
        json_schema_extra = {
            "example": {
                "question": "What is 2 + 2?",
                "options": ["3", "4", "5", "6"],
                "correct_answer": "4",
                "explanation": "Two plus two equals four."
            }
        }


class GeneratedQuiz(BaseModel):
    """Quiz JSON returned by the model"""
    questions: List[QuizQuestion] = Field(default_factory=list)


class QuizGenerationRequest(BaseModel):
    """Input to the quiz generator"""
    user_id: str = Field(..., min_length=1)
    lesson_id: str = Field(..., min_length=1)
    difficulty: Difficulty
    num_questions: int = Field(default=5, ge=1, le=20)
    persona: Optional[Persona] = None
    model: Optional[str] = None


class QuizGenerationResult(BaseModel):
    """Saved quiz row and its XP reward"""
    quiz: Dict[str, Any]
    xp_reward: int
    message: str = "Quiz generated successfully"


class QuestionResult(BaseModel):
    """How one submitted answer compared to the stored correct answer"""
    question: str
    selected_answer: str
    correct_answer: str
    is_correct: bool
    explanation: str = ""


class QuizSubmissionResult(BaseModel):
    """Score of a quiz submission and the XP it earned"""
    quiz_id: str
    score: int = Field(..., description="Number of correct answers")
    total_questions: int
    percentage: int = Field(..., ge=0, le=100)
    correct_answers: List[int] = Field(default_factory=list, description="Indices answered correctly")
    results: List[QuestionResult] = Field(default_factory=list)
    xp_earned: int
    progress: AuxiliaryOutcome
    xp_award: AuxiliaryOutcome
