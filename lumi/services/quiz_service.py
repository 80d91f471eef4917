"""
Quiz Service
Business logic for generating and saving quizzes from stored lessons
FILE: lumi/services/quiz_service.py
"""
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from lumi.core.errors import (
    LessonNotFoundError,
    QuizNotFoundError,
    QuizOwnershipError,
    StoreWriteError,
)
from lumi.db.supabase import SupabaseError
from lumi.models.common import AuxiliaryOutcome
from lumi.models.quiz import (
    GeneratedQuiz,
    QuestionResult,
    QuizGenerationRequest,
    QuizGenerationResult,
    QuizQuestion,
    QuizSubmissionResult,
)
from lumi.prompts.quiz_prompt import build_quiz_prompt
from lumi.services.gamification import XPAwarder, calculate_quiz_xp_reward
from lumi.services.persona_service import resolve_persona
from lumi.utils.json_cleanup import ParseError

logger = logging.getLogger(__name__)


class QuizGenerator:
    """Service for generating quizzes from saved lessons"""

    LESSONS_TABLE = "lessons"
    QUIZZES_TABLE = "quizzes"
    PROGRESS_TABLE = "user_progress"

    def __init__(self, store, llm, xp_awarder: XPAwarder = None):
        self.store = store
        self.llm = llm
        self.xp_awarder = xp_awarder or XPAwarder(store)

    async def _load_lesson(self, lesson_id: str) -> Dict[str, Any]:
        """
        Load the content, topic and subject of a lesson

        Raises:
            LessonNotFoundError: If the lesson does not exist or cannot be read
        """
        try:
            lesson = await self.store.select_one(
                self.LESSONS_TABLE,
                columns="content, topic, subject",
                filters={"id": lesson_id},
            )
        except SupabaseError as e:
            logger.error(f"❌ Failed to load lesson {lesson_id}: {e}")
            raise LessonNotFoundError(f"Failed to load lesson: {e}") from e

        if not lesson:
            raise LessonNotFoundError(f"Lesson not found: {lesson_id}")

        return lesson

    async def generate_quiz(self, request: QuizGenerationRequest) -> QuizGenerationResult:
        """
        Generate a quiz for an existing lesson

        Workflow:
        1. Resolve persona
        2. Load the lesson
        3. Build the prompt (first 2000 chars of lesson content)
        4. Generate structured questions
        5. Compute the XP reward from the returned question count
        6. Insert the quiz row

        Raises:
            LessonNotFoundError: If the lesson cannot be loaded
            ParseError: If the model output is not quiz JSON
            StoreWriteError: If the quiz row could not be saved
        """
        logger.info(
            f"🎯 Generating quiz - User: {request.user_id}, Lesson: {request.lesson_id}, "
            f"Difficulty: {request.difficulty}, Questions: {request.num_questions}"
        )

        persona = await resolve_persona(self.store, request.user_id, request.persona)
        lesson = await self._load_lesson(request.lesson_id)

        prompt = build_quiz_prompt(
            topic=lesson.get("topic") or "",
            subject=lesson.get("subject") or "",
            difficulty=request.difficulty,
            num_questions=request.num_questions,
            lesson_content=lesson.get("content") or "",
        )
        raw_quiz = await self.llm.generate_structured_content(prompt, persona, request.model)

        try:
            quiz_data = GeneratedQuiz.model_validate(raw_quiz)
        except ValidationError as e:
            logger.error(f"❌ Quiz JSON had an unexpected shape: {e}")
            raise ParseError("Gemini response was not a valid quiz JSON object") from e

        logger.info(f"✅ Model returned {len(quiz_data.questions)} questions")

        xp_reward = calculate_quiz_xp_reward(request.difficulty, len(quiz_data.questions))

        payload = {
            "lesson_id": request.lesson_id,
            "user_id": request.user_id,
            "questions": [q.model_dump() for q in quiz_data.questions],
            "xp_reward": xp_reward,
        }

        try:
            saved_quiz = await self.store.insert(self.QUIZZES_TABLE, payload)
        except SupabaseError as e:
            logger.error(f"❌ Failed to save quiz: {e}")
            raise StoreWriteError(f"Failed to save quiz: {e}") from e

        if not saved_quiz:
            raise StoreWriteError("Failed to save quiz: Supabase did not return quiz data")

        logger.info(f"✅ Quiz saved: {saved_quiz.get('id')} (xpReward={xp_reward})")

        return QuizGenerationResult(quiz=saved_quiz, xp_reward=xp_reward)

    async def _load_quiz(self, quiz_id: str) -> Dict[str, Any]:
        try:
            quiz = await self.store.select_one(
                self.QUIZZES_TABLE,
                columns="id, user_id, lesson_id, questions, xp_reward",
                filters={"id": quiz_id},
            )
        except SupabaseError as e:
            logger.error(f"❌ Failed to load quiz {quiz_id}: {e}")
            raise QuizNotFoundError(f"Failed to load quiz: {e}") from e

        if not quiz:
            raise QuizNotFoundError(f"Quiz not found: {quiz_id}")

        return quiz

    async def submit_quiz(
        self,
        user_id: str,
        quiz_id: str,
        answers: List[Optional[str]]
    ) -> QuizSubmissionResult:
        """
        Score a quiz submission and credit XP proportional to the score

        Workflow:
        1. Load the quiz and check it belongs to the user
        2. Compare answers (by question index) with each correct_answer
        3. percentage = round(correct / total * 100); 0 for a quiz without questions
        4. xp_earned = floor(xp_reward * percentage / 100)
        5. Record quiz_id and quiz_score on the lesson's progress row (best effort)
        6. Award xp_earned (best effort)

        Args:
            user_id: Supabase user id submitting the answers
            quiz_id: Quiz being answered
            answers: Selected option text per question; missing entries count as wrong

        Raises:
            QuizNotFoundError: If the quiz cannot be loaded
            QuizOwnershipError: If the quiz belongs to another user
        """
        logger.info(f"📝 Scoring quiz {quiz_id} for {user_id}")

        quiz = await self._load_quiz(quiz_id)
        if str(quiz.get("user_id")) != str(user_id):
            logger.warning(f"⚠️ User {user_id} submitted quiz {quiz_id} owned by {quiz.get('user_id')}")
            raise QuizOwnershipError("Unauthorized")

        questions = [QuizQuestion.model_validate(q) for q in quiz.get("questions") or []]

        results = []
        for index, question in enumerate(questions):
            selected = answers[index] if index < len(answers) else None
            results.append(
                QuestionResult(
                    question=question.question,
                    selected_answer=selected or "",
                    correct_answer=question.correct_answer,
                    is_correct=selected == question.correct_answer,
                    explanation=question.explanation,
                )
            )

        score = sum(1 for r in results if r.is_correct)
        total = len(questions)
        percentage = math.floor(score / total * 100 + 0.5) if total else 0
        xp_earned = math.floor((quiz.get("xp_reward") or 0) * percentage / 100)

        progress = await self._record_score(user_id, quiz, percentage)
        if xp_earned > 0:
            xp_award = await self.xp_awarder.award(user_id, xp_earned)
        else:
            xp_award = AuxiliaryOutcome.skip("no XP earned")

        logger.info(f"✅ Quiz {quiz_id}: {score}/{total} ({percentage}%), +{xp_earned} XP")

        return QuizSubmissionResult(
            quiz_id=str(quiz.get("id") or quiz_id),
            score=score,
            total_questions=total,
            percentage=percentage,
            correct_answers=[i for i, r in enumerate(results) if r.is_correct],
            results=results,
            xp_earned=xp_earned,
            progress=progress,
            xp_award=xp_award,
        )

    async def _record_score(self, user_id: str, quiz: Dict[str, Any], percentage: int) -> AuxiliaryOutcome:
        """Write quiz_score to the lesson's progress row; failures are logged, not raised"""
        try:
            updated = await self.store.update(
                self.PROGRESS_TABLE,
                {
                    "quiz_id": quiz.get("id"),
                    "quiz_score": percentage,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                },
                filters={"user_id": user_id, "lesson_id": quiz.get("lesson_id")},
            )
        except SupabaseError as e:
            logger.warning(f"⚠️ Failed to record quiz score for {quiz.get('id')}: {e}")
            return AuxiliaryOutcome.failure(str(e))

        if not updated:
            return AuxiliaryOutcome.skip("no progress row for lesson")
        return AuxiliaryOutcome.success(quiz_score=percentage)
