"""
Lesson Formatter
Renders generated lesson content as a Markdown-like document
"""
from typing import List

from lumi.models.lesson import GeneratedLessonContent


def _numbered(items: List[str]) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1))


def format_lesson_content(content: GeneratedLessonContent) -> str:
    """
    Format lesson content under fixed section headers

    Practice Exercises is included only when the list is non-empty.

    Args:
        content: Structured lesson from the model

    Returns:
        Document text stored in lessons.content
    """
    formatted = f"# Introduction\n\n{content.introduction}\n\n"
    formatted += f"# Learning Objectives\n\n{_numbered(content.objectives)}\n\n"
    formatted += f"# Key Points\n\n{_numbered(content.key_points)}\n\n"
    formatted += f"# Detailed Content\n\n{content.detailed_content}\n\n"
    formatted += f"# Summary\n\n{content.summary}\n\n"

    if content.practice_exercises:
        formatted += f"# Practice Exercises\n\n{_numbered(content.practice_exercises)}"

    return formatted
