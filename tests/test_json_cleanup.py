import pytest

from lumi.utils.json_cleanup import (
    LenientJSONError,
    ParseError,
    clean_llm_json,
    parse_lenient_json,
    strip_code_fences,
    strip_comments,
    strip_trailing_commas,
)


def test_fenced_json_is_unwrapped():
    raw = '```json\n{"topic": "Algebra"}\n```'
    assert parse_lenient_json(raw) == {"topic": "Algebra"}


def test_plain_fences_are_removed():
    assert strip_code_fences('```\n[1, 2]\n```').strip() == "[1, 2]"


def test_line_and_block_comments_are_removed():
    raw = '{\n  // the subject\n  "subject": "Math", /* inline */\n  "level": 1\n}'
    assert parse_lenient_json(raw) == {"subject": "Math", "level": 1}


def test_urls_inside_strings_survive_comment_stripping():
    raw = '{"link": "https://example.com/a"}'
    assert strip_comments(raw) == raw
    assert parse_lenient_json(raw) == {"link": "https://example.com/a"}


def test_trailing_commas_are_removed():
    assert strip_trailing_commas('{"a": [1, 2,], }') == '{"a": [1, 2]}'


def test_all_stages_combined():
    raw = '```json\n{\n  "questions": [\n    {"q": "1+1?",},\n  ],\n  // done\n}\n```'
    assert parse_lenient_json(raw) == {"questions": [{"q": "1+1?"}]}


def test_clean_strips_surrounding_whitespace():
    assert clean_llm_json("  \n{}\n  ") == "{}"


def test_unrecoverable_text_raises_parse_error():
    with pytest.raises(ParseError, match="Gemini response was not valid JSON"):
        parse_lenient_json("Sure! Here is your lesson.", source="Gemini")


def test_parse_error_is_lenient_json_error():
    with pytest.raises(LenientJSONError):
        parse_lenient_json("")
