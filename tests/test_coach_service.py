import asyncio

import pytest
from pydantic import ValidationError

from lumi.core.errors import IdentityResolutionError
from lumi.services.coach_service import LearningCoachService

from conftest import LESSON_JSON, FakeStore, quiz_json


@pytest.fixture
def coach(store, llm):
    return LearningCoachService(store, llm, environ={})


def run(coro):
    return asyncio.run(coro)


def test_generate_lesson_with_all_fields_skips_inference(coach, store, llm):
    llm.queue_json(LESSON_JSON)

    output = run(
        coach.generate_lesson(
            {"userId": "user-1", "subject": "Math", "topic": "Fractions", "difficulty": "beginner", "duration": 30}
        )
    )

    assert len(llm.prompts) == 1
    assert output.structured["xpReward"] == 80
    assert output.structured["message"] == "Lesson generated successfully"
    lesson_id = output.structured["lesson"]["id"]
    assert output.text == f"Lesson generated successfully\nLesson ID: {lesson_id}\nXP Reward: 80"


def test_generate_lesson_infers_missing_fields(coach, store, llm):
    llm.queue_json(
        {"subject": "Physics", "topic": "Momentum", "difficulty": "intermediate", "duration": 44.5},
        LESSON_JSON,
    )

    output = run(coach.generate_lesson({"userId": "user-1", "prompt": "momentum please", "topic": "Impulse"}))

    saved = store.inserts("lessons")[0]
    assert saved["subject"] == "Physics"
    assert saved["topic"] == "Impulse"
    assert saved["difficulty"] == "intermediate"
    assert saved["duration"] == 45
    # 50 * 1.5 + 40
    assert output.structured["xpReward"] == 115


def test_explicit_duration_is_not_clamped(coach, store, llm):
    llm.queue_json({"subject": "Art"}, LESSON_JSON)

    run(coach.generate_lesson({"userId": "user-1", "prompt": "art", "duration": 180}))

    assert store.inserts("lessons")[0]["duration"] == 180


def test_default_user_is_used_when_user_id_missing(llm):
    store = FakeStore({"users": [{"id": "demo", "xp": 0, "level": 1, "created_at": "2023-01-01"}]})
    coach = LearningCoachService(store, llm, environ={})
    llm.queue_json(LESSON_JSON)

    run(coach.generate_lesson({"subject": "Math", "topic": "Sets", "difficulty": "beginner", "duration": 20}))

    assert store.inserts("lessons")[0]["user_id"] == "demo"


def test_unresolvable_user_fails_before_generation(llm):
    coach = LearningCoachService(FakeStore(), llm, environ={})

    with pytest.raises(IdentityResolutionError):
        run(coach.generate_lesson({"prompt": "anything"}))
    assert llm.prompts == []


def test_invalid_arguments_are_rejected(coach):
    with pytest.raises(ValidationError):
        run(coach.generate_lesson({"userId": "user-1", "difficulty": "expert"}))
    with pytest.raises(ValidationError):
        run(coach.generate_quiz({"userId": "user-1", "numQuestions": 50}))


def test_generate_quiz_for_existing_lesson(coach, store, llm):
    store.rows("lessons").append({"id": "lesson-9", "subject": "Math", "topic": "Sets", "content": "Sets..."})
    llm.queue_json(quiz_json(5))

    output = run(coach.generate_quiz({"userId": "user-1", "lessonId": "lesson-9", "difficulty": "intermediate"}))

    assert output.structured["xpReward"] == 67
    assert output.structured["quiz"]["lesson_id"] == "lesson-9"
    assert "lesson" not in output.structured
    quiz_id = output.structured["quiz"]["id"]
    assert output.text == f"Quiz generated successfully\nQuiz ID: {quiz_id}\nXP Reward: 67"


def test_generate_quiz_defaults_without_prompt(coach, store, llm):
    store.rows("lessons").append({"id": "lesson-9", "subject": "Math", "topic": "Sets", "content": "Sets..."})
    llm.queue_json(quiz_json(5))

    run(coach.generate_quiz({"userId": "user-1", "lessonId": "lesson-9"}))

    prompt = llm.prompts[0][1]
    assert "Difficulty: beginner" in prompt
    assert "Number of Questions: 5" in prompt


def test_generate_quiz_without_lesson_creates_one_first(coach, store, llm):
    llm.queue_json(
        {"subject": "History", "topic": "Rome", "difficulty": "advanced", "duration": 30, "num_questions": 4},
        LESSON_JSON,
        quiz_json(4),
    )

    output = run(coach.generate_quiz({"userId": "user-1", "prompt": "quiz me on ancient Rome"}))

    lesson = store.rows("lessons")[0]
    assert lesson["topic"] == "Rome"
    assert output.structured["quiz"]["lesson_id"] == lesson["id"]
    assert output.structured["lesson"]["id"] == lesson["id"]
    assert "Number of Questions: 4" in llm.prompts[2][1]
    # 30 * 1.8 + 4 * 5
    assert output.structured["xpReward"] == 74


def test_chat_with_student_payload(coach, store, llm):
    llm.queue_text("Keep going!")

    output = run(coach.chat_with_student({"userId": "user-1", "message": "I'm stuck"}))

    row = store.rows("chat_history")[0]
    assert output.structured == {
        "reply": "Keep going!",
        "xpGained": 5,
        "messageId": row["id"],
        "timestamp": row["timestamp"],
    }
    assert output.text == "Keep going!"


def test_chat_requires_message(coach):
    with pytest.raises(ValidationError):
        run(coach.chat_with_student({"userId": "user-1", "message": "  "}))
