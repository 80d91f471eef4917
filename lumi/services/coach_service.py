"""
Learning Coach Service
Tool-level orchestration: identity, detail inference, then the generators
FILE: lumi/services/coach_service.py
"""
import logging
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel

from lumi.models.chat import ChatRequest
from lumi.models.lesson import LessonDetails, LessonGenerationRequest
from lumi.models.quiz import QuizGenerationRequest
from lumi.models.tools import ChatWithStudentArgs, GenerateLessonArgs, GenerateQuizArgs
from lumi.services.chat_service import ChatResponder
from lumi.services.detail_inference import (
    DEFAULT_DIFFICULTY,
    DEFAULT_DURATION,
    DEFAULT_NUM_QUESTIONS,
    infer_lesson_details,
)
from lumi.services.gamification import XPAwarder
from lumi.services.identity import DefaultUserMemo, IdentityResolver
from lumi.services.lesson_service import LessonGenerator
from lumi.services.quiz_service import QuizGenerator

logger = logging.getLogger(__name__)


class ToolOutput(BaseModel):
    """Structured tool payload plus its one-line human-readable summary"""
    structured: Dict[str, Any]
    text: str


class LearningCoachService:
    """Entry point for the generate_lesson / generate_quiz / chat_with_student tools"""

    def __init__(
        self,
        store,
        llm,
        memo: Optional[DefaultUserMemo] = None,
        environ: Optional[Mapping[str, str]] = None
    ):
        """
        Initialize coach service

        Args:
            store: Supabase client
            llm: Gemini content provider
            memo: Default-user memo (one per server instance)
            environ: Environment mapping for default-user variables
        """
        self.store = store
        self.llm = llm
        self.identity = IdentityResolver(store, memo=memo, environ=environ)

        xp_awarder = XPAwarder(store)
        self.lesson_generator = LessonGenerator(store, llm, xp_awarder)
        self.quiz_generator = QuizGenerator(store, llm, xp_awarder)
        self.chat_responder = ChatResponder(store, llm, xp_awarder)

    async def _details_for(
        self,
        prompt: Optional[str],
        subject: Optional[str],
        topic: Optional[str],
        difficulty: Optional[str],
        duration: Optional[int] = None,
        num_questions: Optional[int] = None,
        model: Optional[str] = None
    ) -> LessonDetails:
        """Infer whatever the caller left out; explicit values always win"""
        overrides = {
            "subject": subject,
            "topic": topic,
            "difficulty": difficulty,
        }
        details = await infer_lesson_details(self.llm, prompt, overrides, model=model)

        updates = {}
        if duration is not None:
            updates["duration"] = duration
        if num_questions is not None:
            updates["num_questions"] = num_questions
        return details.model_copy(update=updates)

    async def _create_lesson(self, user_id: str, details: LessonDetails, persona, model):
        return await self.lesson_generator.generate_lesson(
            LessonGenerationRequest(
                user_id=user_id,
                subject=details.subject,
                topic=details.topic,
                difficulty=details.difficulty,
                duration=details.duration,
                persona=persona,
                model=model,
            )
        )

    async def generate_lesson(
        self,
        args: Union[GenerateLessonArgs, Dict[str, Any]]
    ) -> ToolOutput:
        """
        generate_lesson tool

        Missing subject/topic/difficulty/duration are inferred from `prompt`.

        Returns:
            {message, xpReward, lesson} and a summary naming the lesson id
        """
        if not isinstance(args, GenerateLessonArgs):
            args = GenerateLessonArgs.model_validate(args)

        user_id = await self.identity.resolve_user_id(args.userId)

        if args.subject and args.topic and args.difficulty and args.duration:
            details = LessonDetails.model_construct(
                subject=args.subject,
                topic=args.topic,
                difficulty=args.difficulty,
                duration=args.duration,
                num_questions=DEFAULT_NUM_QUESTIONS,
            )
        else:
            details = await self._details_for(
                args.prompt, args.subject, args.topic, args.difficulty,
                duration=args.duration, model=args.model,
            )

        result = await self._create_lesson(user_id, details, args.persona, args.model)

        return ToolOutput(
            structured={
                "message": result.message,
                "xpReward": result.xp_reward,
                "lesson": result.lesson,
            },
            text=(
                f"{result.message}\n"
                f"Lesson ID: {result.lesson.get('id')}\n"
                f"XP Reward: {result.xp_reward}"
            ),
        )

    async def generate_quiz(
        self,
        args: Union[GenerateQuizArgs, Dict[str, Any]]
    ) -> ToolOutput:
        """
        generate_quiz tool

        With lessonId, quizzes that lesson. Without it, lesson details are
        inferred from `prompt`/subject/topic, a lesson is generated, and the
        quiz is built from it.

        Returns:
            {message, xpReward, quiz} (plus `lesson` when one was created)
        """
        if not isinstance(args, GenerateQuizArgs):
            args = GenerateQuizArgs.model_validate(args)

        user_id = await self.identity.resolve_user_id(args.userId)
        created_lesson = None

        if args.lessonId:
            lesson_id = args.lessonId
            difficulty = args.difficulty
            num_questions = args.numQuestions

            if args.prompt and (difficulty is None or num_questions is None):
                details = await self._details_for(
                    args.prompt, args.subject, args.topic, difficulty,
                    num_questions=num_questions, model=args.model,
                )
                difficulty = details.difficulty
                num_questions = details.num_questions

            difficulty = difficulty or DEFAULT_DIFFICULTY
            num_questions = num_questions or DEFAULT_NUM_QUESTIONS
        else:
            if args.subject and args.topic and args.difficulty:
                details = LessonDetails.model_construct(
                    subject=args.subject,
                    topic=args.topic,
                    difficulty=args.difficulty,
                    duration=DEFAULT_DURATION,
                    num_questions=args.numQuestions or DEFAULT_NUM_QUESTIONS,
                )
            else:
                details = await self._details_for(
                    args.prompt, args.subject, args.topic, args.difficulty,
                    num_questions=args.numQuestions, model=args.model,
                )

            logger.info("📚 No lessonId given; generating a lesson for the quiz first")
            lesson_result = await self._create_lesson(user_id, details, args.persona, args.model)
            created_lesson = lesson_result.lesson
            lesson_id = str(created_lesson.get("id"))
            difficulty = details.difficulty
            num_questions = details.num_questions

        result = await self.quiz_generator.generate_quiz(
            QuizGenerationRequest(
                user_id=user_id,
                lesson_id=lesson_id,
                difficulty=difficulty,
                num_questions=num_questions,
                persona=args.persona,
                model=args.model,
            )
        )

        structured = {
            "message": result.message,
            "xpReward": result.xp_reward,
            "quiz": result.quiz,
        }
        if created_lesson is not None:
            structured["lesson"] = created_lesson

        return ToolOutput(
            structured=structured,
            text=(
                f"{result.message}\n"
                f"Quiz ID: {result.quiz.get('id')}\n"
                f"XP Reward: {result.xp_reward}"
            ),
        )

    async def chat_with_student(
        self,
        args: Union[ChatWithStudentArgs, Dict[str, Any]]
    ) -> ToolOutput:
        """
        chat_with_student tool

        Returns:
            {reply, xpGained, messageId, timestamp}; the summary is the reply
        """
        if not isinstance(args, ChatWithStudentArgs):
            args = ChatWithStudentArgs.model_validate(args)

        user_id = await self.identity.resolve_user_id(args.userId)

        result = await self.chat_responder.send_chat_message(
            ChatRequest(
                user_id=user_id,
                message=args.message,
                topic=args.topic,
                persona=args.persona,
                context=args.context or [],
                model=args.model,
            )
        )

        return ToolOutput(
            structured={
                "reply": result.reply,
                "xpGained": result.xp_gained,
                "messageId": result.message_id,
                "timestamp": result.timestamp,
            },
            text=result.reply,
        )
