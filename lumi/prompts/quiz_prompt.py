"""
Quiz Prompt Builder
Constructs prompts for generating quiz questions from stored lesson content
"""


MAX_LESSON_CONTEXT_CHARS = 2000
TRUNCATION_MARKER = "..."

EXAMPLE_SCHEMA = """{
  "questions": [
    {
      "question": "Question text?",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "correct_answer": "Option A",
      "explanation": "Explanation of why this is correct"
    }
  ]
}"""


def truncate_lesson_content(content: str, limit: int = MAX_LESSON_CONTEXT_CHARS) -> str:
    """
    Keep at most `limit` characters of lesson content

    Truncated content is followed by a space and an ellipsis marker.
    """
    content = content or ""
    if len(content) <= limit:
        return content
    return f"{content[:limit]} {TRUNCATION_MARKER}"


def build_quiz_prompt(
    topic: str,
    subject: str,
    difficulty: str,
    num_questions: int,
    lesson_content: str
) -> str:
    """
    Build a prompt for generating multiple-choice questions from a lesson

    Args:
        topic: Lesson topic
        subject: Lesson subject
        difficulty: Target quiz difficulty
        num_questions: Number of questions to request
        lesson_content: Stored lesson content (truncated to 2000 chars)

    Returns:
        A complete prompt string requesting {"questions": [...]} JSON
    """
    return f"""Create a multiple-choice quiz based on the following lesson:

Subject: {subject}
Topic: {topic}
Difficulty: {difficulty}
Number of Questions: {num_questions}

Lesson Content:
{truncate_lesson_content(lesson_content)}

Please generate {num_questions} multiple-choice questions that:
1. Test understanding of key concepts from the lesson
2. Are appropriate for {difficulty} level
3. Have 4 options each
4. Include an explanation for the correct answer

Return the response as a JSON object with this exact structure:
{EXAMPLE_SCHEMA}"""
