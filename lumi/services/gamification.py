"""
Gamification Service
XP rewards, level arithmetic and XP awards against the users table
"""
import logging
import math
from datetime import datetime, timezone

from pydantic import BaseModel

from lumi.db.supabase import SupabaseError
from lumi.models.common import AuxiliaryOutcome

logger = logging.getLogger(__name__)


# XP constants
LESSON_BASE_XP = 50
QUIZ_BASE_XP = 30
QUIZ_XP_PER_QUESTION = 5
LESSON_CREATION_XP = 10
CHAT_MESSAGE_XP = 5

# The lesson and quiz tables differ on purpose; changing either changes rewards
LESSON_DIFFICULTY_MULTIPLIERS = {
    "beginner": 1.0,
    "intermediate": 1.5,
    "advanced": 2.0,
}
QUIZ_DIFFICULTY_MULTIPLIERS = {
    "beginner": 1.0,
    "intermediate": 1.4,
    "advanced": 1.8,
}

MAX_AWARD_ATTEMPTS = 3


class LevelInfo(BaseModel):
    """Progress within the current level"""
    level: int
    xp_current: int
    xp_required: int
    xp_for_next_level: int
    progress_percentage: int


def calculate_level(xp: int) -> int:
    """
    Level for an XP total: floor(sqrt(xp / 100)) + 1

    Level 1: 0-99 XP, level 2: 100-399 XP, level 3: 400-899 XP, ...
    """
    return math.floor(math.sqrt(max(xp, 0) / 100)) + 1


def xp_for_level(level: int) -> int:
    """Minimum XP total for a level (inverse of calculate_level)"""
    return (level - 1) * (level - 1) * 100


def get_level_info(xp: int) -> LevelInfo:
    level = calculate_level(xp)
    xp_for_current = xp_for_level(level)
    xp_for_next = xp_for_level(level + 1)
    xp_required = xp_for_next - xp_for_current
    xp_current = max(xp, 0) - xp_for_current

    return LevelInfo(
        level=level,
        xp_current=xp_current,
        xp_required=xp_required,
        xp_for_next_level=xp_for_next,
        progress_percentage=math.floor(xp_current / xp_required * 100),
    )


def _multiplier(table: dict, difficulty: str) -> float:
    try:
        return table[difficulty]
    except KeyError:
        raise ValueError(
            f"Invalid difficulty: {difficulty}. Must be one of {list(table)}"
        ) from None


def calculate_lesson_xp_reward(difficulty: str, duration: int) -> int:
    """
    XP for consuming a lesson

    floor(50 * multiplier + floor(duration / 10) * 10); a non-positive
    duration earns no duration bonus.
    """
    multiplier = _multiplier(LESSON_DIFFICULTY_MULTIPLIERS, difficulty)
    duration_bonus = (duration // 10) * 10 if duration > 0 else 0
    return math.floor(LESSON_BASE_XP * multiplier + duration_bonus)


def calculate_quiz_xp_reward(difficulty: str, num_questions: int) -> int:
    """XP for a quiz: floor(30 * multiplier + num_questions * 5)"""
    multiplier = _multiplier(QUIZ_DIFFICULTY_MULTIPLIERS, difficulty)
    return math.floor(QUIZ_BASE_XP * multiplier + max(num_questions, 0) * QUIZ_XP_PER_QUESTION)


class XPAwarder:
    """
    Credits XP to a user row

    Each attempt reads xp/level and writes the new totals with an update
    conditioned on the xp value it read. If a concurrent award changed xp
    first, the update matches no rows and the award is recomputed from a
    fresh read, so concurrent increments are not lost.
    """

    def __init__(self, store, max_attempts: int = MAX_AWARD_ATTEMPTS):
        self.store = store
        self.max_attempts = max_attempts

    async def award(self, user_id: str, delta: int) -> AuxiliaryOutcome:
        """
        Add `delta` XP to a user and recompute their level

        Never raises for store failures; the outcome records them.

        Returns:
            AuxiliaryOutcome with new_xp / new_level / level_up on success,
            skipped when the user row does not exist
        """
        try:
            for attempt in range(1, self.max_attempts + 1):
                user = await self.store.select_one(
                    "users", columns="xp, level", filters={"id": user_id}
                )
                if not user:
                    logger.info(f"ℹ️ No user row for {user_id}; XP award skipped")
                    return AuxiliaryOutcome.skip("user not found")

                current_xp = user.get("xp")
                old_xp = current_xp or 0
                old_level = user.get("level") or calculate_level(old_xp)
                new_xp = old_xp + delta
                new_level = calculate_level(new_xp)

                updated = await self.store.update(
                    "users",
                    {
                        "xp": new_xp,
                        "level": new_level,
                        "updated_at": datetime.now(timezone.utc).isoformat(),
                    },
                    filters={"id": user_id, "xp": current_xp},
                )

                if updated:
                    logger.info(
                        f"✅ Awarded {delta} XP to {user_id}: "
                        f"{old_xp} → {new_xp} (level {old_level} → {new_level})"
                    )
                    return AuxiliaryOutcome.success(
                        xp_gained=delta,
                        new_xp=new_xp,
                        new_level=new_level,
                        level_up=new_level > old_level,
                        attempts=attempt,
                    )

                logger.info(
                    f"🔁 XP for {user_id} changed during award "
                    f"(attempt {attempt}/{self.max_attempts}), retrying"
                )

            message = f"XP for user {user_id} kept changing; gave up after {self.max_attempts} attempts"
            logger.warning(f"⚠️ {message}")
            return AuxiliaryOutcome.failure(message)

        except SupabaseError as e:
            logger.warning(f"⚠️ Failed to award {delta} XP to {user_id}: {e}")
            return AuxiliaryOutcome.failure(str(e))
