"""
Lesson Service
Generates a lesson with Gemini, stores it and its initial progress row
FILE: lumi/services/lesson_service.py
"""
import logging
from datetime import datetime, timezone

from pydantic import ValidationError

from lumi.core.errors import LessonNotFoundError, StoreWriteError
from lumi.db.supabase import SupabaseError
from lumi.models.common import AuxiliaryOutcome
from lumi.models.lesson import (
    GeneratedLessonContent,
    LessonCompletionResult,
    LessonGenerationRequest,
    LessonGenerationResult,
)
from lumi.prompts.lesson_prompt import build_lesson_prompt
from lumi.services.gamification import (
    LESSON_CREATION_XP,
    XPAwarder,
    calculate_lesson_xp_reward,
)
from lumi.services.persona_service import resolve_persona
from lumi.utils.json_cleanup import ParseError
from lumi.utils.lesson_formatter import format_lesson_content

logger = logging.getLogger(__name__)


class LessonGenerator:
    """Service for generating and saving lessons"""

    LESSONS_TABLE = "lessons"
    PROGRESS_TABLE = "user_progress"

    def __init__(self, store, llm, xp_awarder: XPAwarder = None):
        """
        Initialize lesson generator

        Args:
            store: Supabase client (or any object with the same interface)
            llm: Content provider with generate_structured_content()
            xp_awarder: XP awarder; built from the store when omitted
        """
        self.store = store
        self.llm = llm
        self.xp_awarder = xp_awarder or XPAwarder(store)

    async def generate_lesson(self, request: LessonGenerationRequest) -> LessonGenerationResult:
        """
        Generate and persist a lesson

        Workflow:
        1. Resolve persona
        2. Build the lesson prompt
        3. Generate structured content
        4. Compute the XP reward
        5. Format the lesson document
        6. Insert the lesson row
        7. Insert the zero-progress row (best effort)
        8. Award lesson-creation XP (best effort)

        Raises:
            ParseError: If the model output is not a lesson JSON object
            StoreWriteError: If the lesson row could not be saved
        """
        logger.info(
            f"📚 Generating lesson - User: {request.user_id}, "
            f"{request.subject}/{request.topic} ({request.difficulty}, {request.duration} min)"
        )

        persona = await resolve_persona(self.store, request.user_id, request.persona)

        prompt = build_lesson_prompt(
            subject=request.subject,
            topic=request.topic,
            difficulty=request.difficulty,
            duration=request.duration,
        )
        raw_content = await self.llm.generate_structured_content(prompt, persona, request.model)

        try:
            content = GeneratedLessonContent.model_validate(raw_content)
        except ValidationError as e:
            logger.error(f"❌ Lesson JSON had an unexpected shape: {e}")
            raise ParseError("Gemini response was not a valid lesson JSON object") from e

        xp_reward = calculate_lesson_xp_reward(request.difficulty, request.duration)
        formatted_content = format_lesson_content(content)

        lesson = await self._save_lesson(request, content, formatted_content, xp_reward)
        logger.info(f"✅ Lesson saved: {lesson.get('id')} (xpReward={xp_reward})")

        progress = await self._create_progress_row(request.user_id, lesson.get("id"))
        xp_award = await self.xp_awarder.award(request.user_id, LESSON_CREATION_XP)

        return LessonGenerationResult(
            lesson=lesson,
            xp_reward=xp_reward,
            progress=progress,
            xp_award=xp_award,
        )

    async def _save_lesson(
        self,
        request: LessonGenerationRequest,
        content: GeneratedLessonContent,
        formatted_content: str,
        xp_reward: int
    ) -> dict:
        payload = {
            "user_id": request.user_id,
            "topic": request.topic,
            "subject": request.subject,
            "difficulty": request.difficulty,
            "duration": request.duration,
            "content": formatted_content,
            "objectives": content.objectives,
            "key_points": content.key_points,
            "xp_reward": xp_reward,
        }

        try:
            lesson = await self.store.insert(self.LESSONS_TABLE, payload)
        except SupabaseError as e:
            logger.error(f"❌ Failed to save lesson: {e}")
            raise StoreWriteError(f"Failed to save lesson: {e}") from e

        if not lesson:
            raise StoreWriteError("Failed to save lesson: Supabase did not return lesson data")

        return lesson

    async def _create_progress_row(self, user_id: str, lesson_id) -> AuxiliaryOutcome:
        """Insert the initial progress row; failures are logged, not raised"""
        try:
            row = await self.store.insert(
                self.PROGRESS_TABLE,
                {
                    "user_id": user_id,
                    "lesson_id": lesson_id,
                    "completed": False,
                    "time_spent": 0,
                },
            )
        except SupabaseError as e:
            logger.warning(f"⚠️ Failed to create initial progress row for lesson {lesson_id}: {e}")
            return AuxiliaryOutcome.failure(str(e))

        return AuxiliaryOutcome.success(progress_id=(row or {}).get("id"))

    async def complete_lesson(self, user_id: str, lesson_id: str) -> LessonCompletionResult:
        """
        Mark a lesson complete for a user and credit its XP reward

        The user's progress row is updated; when none exists (its creation
        is best effort) a completed row is inserted instead.

        Args:
            user_id: Supabase user id
            lesson_id: Lesson to complete

        Returns:
            LessonCompletionResult with the lesson's xp_reward and the award outcome

        Raises:
            LessonNotFoundError: If the lesson does not exist or cannot be read
            StoreWriteError: If the progress row could not be written
        """
        logger.info(f"🏁 Completing lesson {lesson_id} for {user_id}")

        try:
            lesson = await self.store.select_one(
                self.LESSONS_TABLE, columns="id, xp_reward", filters={"id": lesson_id}
            )
        except SupabaseError as e:
            logger.error(f"❌ Failed to load lesson {lesson_id}: {e}")
            raise LessonNotFoundError(f"Failed to load lesson: {e}") from e

        if not lesson:
            raise LessonNotFoundError(f"Lesson not found: {lesson_id}")

        xp_reward = lesson.get("xp_reward") or 0
        now = datetime.now(timezone.utc).isoformat()

        try:
            updated = await self.store.update(
                self.PROGRESS_TABLE,
                {"completed": True, "completed_at": now, "updated_at": now},
                filters={"user_id": user_id, "lesson_id": lesson_id},
            )
            if not updated:
                await self.store.insert(
                    self.PROGRESS_TABLE,
                    {
                        "user_id": user_id,
                        "lesson_id": lesson_id,
                        "completed": True,
                        "completed_at": now,
                        "time_spent": 0,
                    },
                )
        except SupabaseError as e:
            logger.error(f"❌ Failed to update progress for lesson {lesson_id}: {e}")
            raise StoreWriteError(f"Failed to update lesson progress: {e}") from e

        if xp_reward > 0:
            xp_award = await self.xp_awarder.award(user_id, xp_reward)
        else:
            xp_award = AuxiliaryOutcome.skip("lesson has no XP reward")

        logger.info(f"✅ Lesson {lesson_id} completed by {user_id} (+{xp_reward} XP)")

        return LessonCompletionResult(lesson_id=lesson_id, xp_reward=xp_reward, xp_award=xp_award)
