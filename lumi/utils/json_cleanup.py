"""
Lenient JSON Extraction
Best-effort cleanup of LLM output before JSON parsing
"""
import json
import re
import logging
from typing import Any

logger = logging.getLogger(__name__)


class LenientJSONError(Exception):
    """Base exception for JSON extraction errors"""
    pass


class ParseError(LenientJSONError):
    """Raised when text cannot be parsed as JSON even after cleanup"""
    pass


_FENCE_OPEN = re.compile(r"```json\s*", re.IGNORECASE)
_FENCE = re.compile(r"```\s*")
_LINE_COMMENT = re.compile(r"^\s*//.*$", re.MULTILINE)
_BLOCK_COMMENT = re.compile(r"/\*[\s\S]*?\*/")
_TRAILING_COMMA = re.compile(r",\s*([\]}])")


def strip_code_fences(text: str) -> str:
    """
    Remove markdown code fence markers

    Args:
        text: Raw text possibly wrapped in ```json ... ``` fences

    Returns:
        Text with every fence marker removed
    """
    text = _FENCE_OPEN.sub("", text)
    return _FENCE.sub("", text)


def strip_comments(text: str) -> str:
    """
    Remove whole-line // comments and /* ... */ block comments

    Only lines that start with // are dropped, so URLs inside
    string values survive.
    """
    text = _LINE_COMMENT.sub("", text)
    return _BLOCK_COMMENT.sub("", text)


def strip_trailing_commas(text: str) -> str:
    """Remove commas directly before a closing ] or }"""
    return _TRAILING_COMMA.sub(r"\1", text)


def clean_llm_json(raw_response: str) -> str:
    """
    Apply all cleanup stages

    Args:
        raw_response: Raw LLM response string

    Returns:
        Cleaned JSON string ready for parsing
    """
    text = strip_code_fences(raw_response)
    text = strip_comments(text)
    text = strip_trailing_commas(text)
    return text.strip()


def parse_lenient_json(raw_response: str, source: str = "LLM") -> Any:
    """
    Clean and parse JSON from an LLM response

    Args:
        raw_response: Raw string response from the model
        source: Name used in the error message (e.g. "Gemini")

    Returns:
        The decoded JSON value

    Raises:
        ParseError: If the cleaned text is still not valid JSON

    Example:
        >>> parse_lenient_json('```json\\n{"a": [1, 2,],}\\n```')
        {'a': [1, 2]}
    """
    cleaned = clean_llm_json(raw_response or "")

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(
            f"❌ Failed to parse {source} structured output: {e}\n"
            f"Cleaned: {cleaned[:2000]}\n"
            f"Original: {(raw_response or '')[:2000]}"
        )
        raise ParseError(f"{source} response was not valid JSON") from e
