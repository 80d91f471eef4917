import asyncio
from types import SimpleNamespace

import httpx
import openai
import pytest

from lumi.prompts.personas import JSON_ONLY_INSTRUCTION, PERSONA_PROMPTS
from lumi.services.llm_client import GeminiProvider, LLMAPIError, LLMClientError, LLMTimeoutError
from lumi.utils.json_cleanup import ParseError


class StubCompletions:
    def __init__(self, replies):
        self.replies = list(replies)
        self.requests = []

    async def create(self, model, messages):
        self.requests.append({"model": model, "messages": messages})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def provider(*replies):
    completions = StubCompletions(replies)
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return GeminiProvider(api_key="key", default_model="gemini-test", client=client), completions


def test_structured_content_is_cleaned_and_parsed():
    gemini, completions = provider('```json\n{"summary": "ok",}\n```')

    result = asyncio.run(gemini.generate_structured_content("Make a lesson", "fun"))

    assert result == {"summary": "ok"}
    prompt = completions.requests[0]["messages"][0]["content"]
    assert prompt.startswith(PERSONA_PROMPTS["fun"])
    assert prompt.endswith(JSON_ONLY_INSTRUCTION)
    assert completions.requests[0]["model"] == "gemini-test"


def test_text_generation_has_no_json_instruction():
    gemini, completions = provider("Hello student")

    reply = asyncio.run(gemini.generate_text("Say hi", "strict", model="gemini-override"))

    assert reply == "Hello student"
    assert JSON_ONLY_INSTRUCTION not in completions.requests[0]["messages"][0]["content"]
    assert completions.requests[0]["model"] == "gemini-override"


def test_unparseable_structured_reply():
    gemini, _ = provider("I cannot do that")

    with pytest.raises(ParseError, match="Gemini response was not valid JSON"):
        asyncio.run(gemini.generate_structured_content("x", "friendly"))


def test_empty_reply_is_an_api_error():
    gemini, _ = provider("")

    with pytest.raises(LLMAPIError, match="empty response"):
        asyncio.run(gemini.generate_text("x", "friendly"))


def test_timeout_is_mapped():
    request = httpx.Request("POST", "https://gemini.test/chat/completions")
    gemini, _ = provider(openai.APITimeoutError(request=request))

    with pytest.raises(LLMTimeoutError):
        asyncio.run(gemini.generate_text("x", "friendly"))


def test_api_error_is_mapped():
    request = httpx.Request("POST", "https://gemini.test/chat/completions")
    gemini, _ = provider(openai.APIConnectionError(request=request))

    with pytest.raises(LLMAPIError):
        asyncio.run(gemini.generate_text("x", "friendly"))


def test_missing_key_is_rejected():
    with pytest.raises(LLMClientError):
        GeminiProvider(api_key="")


def test_health_check_reports_model():
    gemini, _ = provider()
    assert gemini.health_check()["model"] == "gemini-test"
