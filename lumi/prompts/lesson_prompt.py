"""
Lesson Prompt Builder
"""


LESSON_SCHEMA = """{
  "introduction": "engaging introduction text",
  "objectives": ["objective 1", "objective 2", ...],
  "key_points": ["point 1", "point 2", ...],
  "detailed_content": "comprehensive explanation of the topic",
  "summary": "brief recap of main points",
  "practice_exercises": ["exercise 1", "exercise 2", ...]
}"""


def build_lesson_prompt(subject: str, topic: str, difficulty: str, duration: int) -> str:
    """
    Build the structured lesson generation prompt

    Args:
        subject: Lesson subject
        topic: Lesson topic
        difficulty: beginner, intermediate or advanced
        duration: Estimated duration in minutes

    Returns:
        Prompt requesting a JSON object with the six lesson keys
    """
    return f"""Create a comprehensive educational lesson with the following specifications:

Subject: {subject}
Topic: {topic}
Difficulty Level: {difficulty}
Duration: {duration} minutes

Please generate a structured lesson that includes:
1. An engaging introduction that captures interest
2. Clear learning objectives (3-5 specific goals)
3. Key points to cover (5-7 main concepts)
4. Detailed content explanation
5. A concise summary
6. Optional practice exercises

Return the response as a JSON object with this exact structure:
{LESSON_SCHEMA}"""
