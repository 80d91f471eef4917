import asyncio

import pytest

from lumi.core.errors import LessonNotFoundError, StoreWriteError
from lumi.models.lesson import GeneratedLessonContent, LessonGenerationRequest
from lumi.prompts.personas import PERSONA_PROMPTS
from lumi.services.lesson_service import LessonGenerator
from lumi.utils.json_cleanup import ParseError
from lumi.utils.lesson_formatter import format_lesson_content

from conftest import LESSON_JSON


def make_request(**overrides):
    data = {
        "user_id": "user-1",
        "subject": "Math",
        "topic": "Fractions",
        "difficulty": "beginner",
        "duration": 30,
    }
    data.update(overrides)
    return LessonGenerationRequest(**data)


def generate(store, llm, **overrides):
    return asyncio.run(LessonGenerator(store, llm).generate_lesson(make_request(**overrides)))


def test_format_includes_sections_in_order():
    text = format_lesson_content(GeneratedLessonContent(**LESSON_JSON))

    headers = ["# Introduction", "# Learning Objectives", "# Key Points",
               "# Detailed Content", "# Summary", "# Practice Exercises"]
    positions = [text.index(h) for h in headers]
    assert positions == sorted(positions)
    assert "1. Read fractions\n2. Compare fractions" in text


def test_format_omits_empty_practice_exercises():
    content = GeneratedLessonContent(**{**LESSON_JSON, "practice_exercises": []})
    assert "# Practice Exercises" not in format_lesson_content(content)


def test_partial_content_is_coerced():
    content = GeneratedLessonContent.model_validate({"objectives": "Only one", "summary": None})
    assert content.objectives == ["Only one"]
    assert content.summary == ""
    assert content.key_points == []


def test_lesson_is_saved_with_reward(store, llm):
    llm.queue_json(LESSON_JSON)

    result = generate(store, llm)

    assert result.xp_reward == 80
    assert result.message == "Lesson generated successfully"
    saved = store.inserts("lessons")[0]
    assert saved["user_id"] == "user-1"
    assert saved["objectives"] == LESSON_JSON["objectives"]
    assert saved["key_points"] == LESSON_JSON["key_points"]
    assert saved["content"].startswith("# Introduction")
    assert saved["xp_reward"] == 80
    assert result.lesson["id"] == store.rows("lessons")[0]["id"]


def test_progress_row_and_creation_xp(store, llm):
    llm.queue_json(LESSON_JSON)

    result = generate(store, llm)

    progress = store.inserts("user_progress")[0]
    assert progress == {
        "user_id": "user-1",
        "lesson_id": result.lesson["id"],
        "completed": False,
        "time_spent": 0,
    }
    assert result.progress.ok
    assert result.xp_award.ok
    assert store.rows("users")[0]["xp"] == 10


def test_progress_failure_does_not_fail_the_lesson(store, llm):
    llm.queue_json(LESSON_JSON)
    store.insert_rejections["user_progress"] = lambda payload: "duplicate key"

    result = generate(store, llm)

    assert result.lesson["id"]
    assert not result.progress.ok
    assert result.progress.error == "duplicate key"


def test_missing_user_row_skips_xp(llm):
    from conftest import FakeStore

    store = FakeStore()
    llm.queue_json(LESSON_JSON)

    result = generate(store, llm)

    assert result.xp_award.skipped


def test_rejected_insert_raises_store_write_error(store, llm):
    llm.queue_json(LESSON_JSON)
    store.insert_rejections["lessons"] = lambda payload: "violates check constraint"

    with pytest.raises(StoreWriteError, match="Failed to save lesson: violates check constraint"):
        generate(store, llm)
    assert store.inserts("user_progress") == []


def test_empty_insert_raises_store_write_error(store, llm):
    llm.queue_json(LESSON_JSON)
    store.empty_inserts.add("lessons")

    with pytest.raises(StoreWriteError, match="Failed to save lesson"):
        generate(store, llm)


def test_non_object_output_is_a_parse_error(store, llm):
    llm.queue_json(["not", "a", "lesson"])

    with pytest.raises(ParseError):
        generate(store, llm)


def test_stored_persona_is_used(store, llm):
    store.rows("users")[0]["persona"] = "strict"
    llm.queue_json(LESSON_JSON)

    generate(store, llm)

    assert llm.prompts[0][2] == "strict"


def test_invalid_stored_persona_falls_back_to_friendly(store, llm):
    store.rows("users")[0]["persona"] = "pirate"
    llm.queue_json(LESSON_JSON)

    generate(store, llm)

    assert llm.prompts[0][2] == "friendly"
    assert "friendly" in PERSONA_PROMPTS


def test_persona_override_and_model_are_passed(store, llm):
    llm.queue_json(LESSON_JSON)

    generate(store, llm, persona="fun", model="gemini-1.5-pro")

    _, prompt, persona, model = llm.prompts[0]
    assert persona == "fun"
    assert model == "gemini-1.5-pro"
    assert "Topic: Fractions" in prompt


def complete(store, lesson_id="lesson-1", user_id="user-1"):
    return asyncio.run(LessonGenerator(store, llm=None).complete_lesson(user_id, lesson_id))


def test_completing_lesson_marks_progress_and_credits_reward(store):
    store.rows("lessons").append({"id": "lesson-1", "xp_reward": 80})
    store.rows("user_progress").append(
        {"id": "p-1", "user_id": "user-1", "lesson_id": "lesson-1", "completed": False, "time_spent": 0}
    )

    result = complete(store)

    assert result.xp_reward == 80
    assert result.xp_award.ok
    assert result.xp_award.detail["new_xp"] == 80
    progress = store.rows("user_progress")[0]
    assert progress["completed"] is True
    assert progress["completed_at"]
    assert store.rows("users")[0]["xp"] == 80


def test_completing_without_progress_row_inserts_one(store):
    store.rows("lessons").append({"id": "lesson-1", "xp_reward": 50})

    complete(store)

    rows = store.rows("user_progress")
    assert len(rows) == 1
    assert rows[0]["completed"] is True
    assert rows[0]["user_id"] == "user-1"


def test_completing_unknown_lesson_raises(store):
    with pytest.raises(LessonNotFoundError, match="Lesson not found: missing"):
        complete(store, lesson_id="missing")

    assert store.rows("users")[0]["xp"] == 0


def test_progress_write_failure_on_completion_raises(store):
    store.rows("lessons").append({"id": "lesson-1", "xp_reward": 50})
    store.update_failures["user_progress"] = "permission denied"

    with pytest.raises(StoreWriteError, match="Failed to update lesson progress: permission denied"):
        complete(store)

    assert store.rows("users")[0]["xp"] == 0


def test_completing_lesson_without_reward_skips_award(store):
    store.rows("lessons").append({"id": "lesson-1", "xp_reward": None})

    result = complete(store)

    assert result.xp_reward == 0
    assert result.xp_award.skipped
