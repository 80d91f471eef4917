"""
Detail Inference
Derives lesson parameters from a free-text request via Gemini
"""
import logging
import math
from typing import Any, Dict, Optional

from lumi.models.common import DIFFICULTIES
from lumi.models.lesson import LessonDetails
from lumi.prompts.details_prompt import build_details_prompt

logger = logging.getLogger(__name__)


FALLBACK_REQUEST = "Create a general study session."
DEFAULT_SUBJECT = "General Studies"
DEFAULT_DIFFICULTY = "beginner"
DEFAULT_DURATION = 30
DEFAULT_NUM_QUESTIONS = 5
DURATION_RANGE = (15, 120)
NUM_QUESTIONS_RANGE = (3, 12)
INFERENCE_PERSONA = "scholar"


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def round_and_clamp(value: Any, low: int, high: int, default: int) -> int:
    """
    Round half up, then clamp into [low, high]

    Numeric strings are accepted; anything non-numeric or non-finite
    returns `default`.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return min(max(math.floor(number + 0.5), low), high)


def normalize_difficulty(value: Any) -> str:
    if isinstance(value, str) and value.strip().lower() in DIFFICULTIES:
        return value.strip().lower()
    return DEFAULT_DIFFICULTY


def resolve_details(
    extracted: Dict[str, Any],
    overrides: Optional[Dict[str, Any]] = None
) -> LessonDetails:
    """
    Merge caller overrides, extracted values and defaults

    Priority per field: override > extracted > default. Subject and topic
    fall back to each other when only one is known.
    """
    overrides = overrides or {}

    def pick(key: str, *extracted_keys: str):
        if overrides.get(key) is not None:
            return overrides[key]
        for name in extracted_keys or (key,):
            if extracted.get(name) is not None:
                return extracted[name]
        return None

    subject = _text(pick("subject"))
    topic = _text(pick("topic"))
    subject = subject or topic or DEFAULT_SUBJECT
    topic = topic or subject

    return LessonDetails(
        subject=subject,
        topic=topic,
        difficulty=normalize_difficulty(pick("difficulty")),
        duration=round_and_clamp(pick("duration"), *DURATION_RANGE, DEFAULT_DURATION),
        num_questions=round_and_clamp(
            pick("num_questions", "num_questions", "numQuestions"),
            *NUM_QUESTIONS_RANGE,
            DEFAULT_NUM_QUESTIONS,
        ),
    )


async def infer_lesson_details(
    llm,
    free_text: Optional[str],
    overrides: Optional[Dict[str, Any]] = None,
    model: Optional[str] = None
) -> LessonDetails:
    """
    Infer subject/topic/difficulty/duration/num_questions from a request

    Extraction failures never propagate; inference degrades to defaults.

    Args:
        llm: Content provider with generate_structured_content()
        free_text: The learner's request (blank uses a generic request)
        overrides: Values supplied explicitly by the caller
        model: Optional model override

    Returns:
        Validated LessonDetails
    """
    request = (free_text or "").strip() or FALLBACK_REQUEST

    try:
        extracted = await llm.generate_structured_content(
            build_details_prompt(request), INFERENCE_PERSONA, model
        )
    except Exception as e:
        logger.warning(f"⚠️ Detail inference failed, using defaults: {e}")
        extracted = {}

    if not isinstance(extracted, dict):
        logger.warning(f"⚠️ Detail inference returned {type(extracted).__name__}, using defaults")
        extracted = {}

    details = resolve_details(extracted, overrides)
    logger.info(
        f"🧭 Inferred details - {details.subject}/{details.topic} "
        f"({details.difficulty}, {details.duration} min, {details.num_questions} questions)"
    )
    return details
