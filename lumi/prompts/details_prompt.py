def build_details_prompt(request: str) -> str:
    """
    Build a prompt that extracts lesson parameters from a free-text request

    Args:
        request: The learner's natural-language request

    Returns:
        Prompt asking for {subject, topic, difficulty, duration, num_questions}
    """
    return f"""Extract structured lesson details from the learner's request below.

LEARNER REQUEST:
{request}

Return a JSON object with this exact structure:
{{
  "subject": "broad subject area, e.g. Mathematics",
  "topic": "specific topic within the subject",
  "difficulty": "beginner" | "intermediate" | "advanced",
  "duration": estimated lesson length in minutes (integer between 15 and 120),
  "num_questions": number of quiz questions (integer between 3 and 12)
}}

If the request does not say something, choose a sensible value."""
