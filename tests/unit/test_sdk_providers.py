"""
Unit Tests for the SDK-backed Providers
=======================================

OpenAI and Anthropic clients with the SDK client replaced by mocks.
"""

import json

import pytest
from anthropic import AnthropicError
from openai import OpenAIError
from unittest.mock import AsyncMock, MagicMock

from finvisor.core.providers.anthropic_client import (
    FALLBACK_STRATEGY,
    AnthropicClient,
    count_citations,
)
from finvisor.core.providers.base import ProviderError, ProviderNotConfiguredError
from finvisor.core.providers.openai_client import FINNIE_SYSTEM_PROMPT, OpenAIClient
from finvisor.models.schemas import ChatMessage, ResearchItem, StudentProfile, TranscriptEntry

from tests.conftest import make_settings
from tests.utils.mocks import anthropic_message, openai_completion, text_block, thinking_block


@pytest.fixture
def profile(student_profile):
    return StudentProfile.model_validate(student_profile)


@pytest.mark.unit
class TestOpenAIClient:
    """Test the OpenAI wrapper."""

    @pytest.fixture
    def client(self):
        client = OpenAIClient(make_settings(openai_api_key="sk-test"))
        client._client = MagicMock()
        return client

    def test_unconfigured_client_raises(self):
        client = OpenAIClient(make_settings())

        with pytest.raises(ProviderNotConfiguredError) as exc_info:
            client._get_client()

        assert str(exc_info.value) == "OPENAI_API_KEY environment variable is required"

    @pytest.mark.asyncio
    async def test_chat_response_prepends_finnie(self, client):
        create = AsyncMock(return_value=openai_completion("What school?", total_tokens=57))
        client._client.chat.completions.create = create

        result = await client.generate_chat_response([ChatMessage(role="user", content="Hi")])

        assert result == {"content": "What school?", "usage": {"tokens": 57}}
        messages = create.call_args.kwargs["messages"]
        assert messages[0] == {"role": "system", "content": FINNIE_SYSTEM_PROMPT}
        assert messages[1] == {"role": "user", "content": "Hi"}
        assert create.call_args.kwargs["temperature"] == 0.7
        assert create.call_args.kwargs["max_tokens"] == 1000

    @pytest.mark.asyncio
    async def test_chat_response_without_choices(self, client):
        client._client.chat.completions.create = AsyncMock(return_value=openai_completion(None))

        result = await client.generate_chat_response([ChatMessage(content="Hi")])

        assert result["content"] == ""

    @pytest.mark.asyncio
    async def test_sdk_error_becomes_provider_error(self, client):
        client._client.chat.completions.create = AsyncMock(side_effect=OpenAIError("quota"))

        with pytest.raises(ProviderError) as exc_info:
            await client.generate_chat_response([ChatMessage(content="Hi")])

        assert "OpenAI API error: quota" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_vision_parse(self, client):
        payload = {"fields": [{"key": "gross_income", "value": "62450", "confidence": 0.95}]}
        create = AsyncMock(return_value=openai_completion(json.dumps(payload)))
        client._client.chat.completions.create = create

        result = await client.parse_document_with_vision("aGVsbG8=", "w2")

        assert result == {"fields": payload["fields"], "rawText": ""}
        image = create.call_args.kwargs["messages"][1]["content"][0]
        assert image["image_url"]["url"] == "data:image/jpeg;base64,aGVsbG8="
        assert create.call_args.kwargs["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self, client):
        client._client.chat.completions.create = AsyncMock(
            return_value=openai_completion("not json")
        )

        with pytest.raises(ProviderError):
            await client.extract_structured_data("text", {"efc": "number"})

    @pytest.mark.asyncio
    async def test_embeddings(self, client):
        client._client.embeddings.create = AsyncMock(
            return_value=MagicMock(data=[MagicMock(embedding=[0.1, 0.2])])
        )

        assert await client.generate_embeddings(["a"]) == [[0.1, 0.2]]


@pytest.mark.unit
class TestAnthropicClient:
    """Test the Anthropic wrapper."""

    @pytest.fixture
    def client(self):
        client = AnthropicClient(make_settings(anthropic_api_key="sk-ant-test"))
        client._client = MagicMock()
        return client

    @pytest.mark.asyncio
    async def test_gap_strategy_parses_json(self, client, profile):
        answer = {
            "steps": [{"label": "Income", "result": "Drop", "status": "positive"}],
            "negotiationPlan": ["Lead with income"],
            "confidence": 0.8,
        }
        create = AsyncMock(
            return_value=anthropic_message(text_block(f"```json\n{json.dumps(answer)}\n```"))
        )
        client._client.messages.create = create

        result = await client.analyze_gap_strategy(profile)

        assert result == answer
        prompt = create.call_args.kwargs["messages"][0]["content"]
        assert "School: Stanford University" in prompt
        assert "Gap: $17,000" in prompt
        assert "- job_loss: Mother lost her job in October (Impact: $33350)" in prompt

    @pytest.mark.asyncio
    async def test_gap_strategy_tolerates_odd_shapes(self, client, profile):
        answer = {"steps": "Income analysis", "negotiationPlan": [{"step": "Call"}, "Email"]}
        client._client.messages.create = AsyncMock(
            return_value=anthropic_message(text_block(json.dumps(answer)))
        )

        result = await client.analyze_gap_strategy(profile)

        assert result["steps"] == []
        assert result["negotiationPlan"] == ["{'step': 'Call'}", "Email"]
        assert result["confidence"] == FALLBACK_STRATEGY["confidence"]

    @pytest.mark.asyncio
    async def test_gap_strategy_fallback(self, client, profile):
        client._client.messages.create = AsyncMock(
            return_value=anthropic_message(text_block("I cannot produce JSON today."))
        )

        result = await client.analyze_gap_strategy(profile)

        assert result == FALLBACK_STRATEGY
        result["steps"].append({})
        assert len(FALLBACK_STRATEGY["steps"]) == 1

    @pytest.mark.asyncio
    async def test_appeal_letter_metadata(self, client, profile):
        letter = "Dear Office,\nPer the KFF report, costs rose.\nSincerely,\nSarah"
        client._client.messages.create = AsyncMock(
            return_value=anthropic_message(text_block(letter))
        )
        research = [
            ResearchItem(query="q", result="r", source="KFF Health Insurance Report"),
            ResearchItem(query="q", result="r", source="IPEDS Data"),
        ]

        result = await client.generate_appeal_letter(profile, research, ["Lead with income"])

        assert result["letter"] == letter
        assert result["metadata"] == {
            "wordCount": len(letter.split()),
            "citationsUsed": 1,
            "tone": "Professional & empathetic",
        }

    @pytest.mark.asyncio
    async def test_deep_analysis_separates_thinking(self, client):
        create = AsyncMock(
            return_value=anthropic_message(thinking_block("weighing"), text_block("Lead with COBRA"))
        )
        client._client.messages.create = create

        result = await client.deep_analysis("What works?", "context")

        assert result == {"analysis": "Lead with COBRA", "thinking": "weighing"}
        assert create.call_args.kwargs["thinking"] == {"type": "enabled", "budget_tokens": 10000}

    @pytest.mark.asyncio
    async def test_advisor_response_falls_back_to_text(self, client):
        create = AsyncMock(return_value=anthropic_message(text_block("Suggest a follow-up")))
        client._client.messages.create = create
        transcript = [TranscriptEntry(speaker="Student", text=f"line {i}") for i in range(12)]

        result = await client.advisor_response(transcript, "Stanford appeal")

        assert result == {"suggestion": "Suggest a follow-up", "insight": "", "actionItems": []}
        prompt = create.call_args.kwargs["messages"][0]["content"]
        assert "line 1\n" not in prompt
        assert "Student: line 2" in prompt
        assert "Student: line 11" in prompt

    @pytest.mark.asyncio
    async def test_sdk_error_becomes_provider_error(self, client, profile):
        client._client.messages.create = AsyncMock(side_effect=AnthropicError("overloaded"))

        with pytest.raises(ProviderError) as exc_info:
            await client.analyze_gap_strategy(profile)

        assert exc_info.value.provider == "anthropic"

    def test_count_citations_uses_first_word_of_source(self):
        research = [
            ResearchItem(source="Stanford Financial Aid Office"),
            ResearchItem(source="Journal of Student Financial Aid"),
        ]
        assert count_citations("At stanford the policy is clear", research) == 1
