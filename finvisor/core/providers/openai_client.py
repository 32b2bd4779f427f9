"""
OpenAI Provider
===============

Intake chat, vision document parsing, structured extraction and embeddings
through the async OpenAI SDK.
"""

import json
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from finvisor.config.logging import get_logger
from finvisor.config.settings import Settings, get_settings
from finvisor.models.schemas import ChatMessage
from .base import ProviderError, ProviderNotConfiguredError

logger = get_logger(__name__)

FINNIE_SYSTEM_PROMPT = """You are Finnie, a warm and empathetic AI financial aid advisor.
Your goal is to help students build the strongest possible appeal for additional financial aid.
Be supportive, professional, and thorough in gathering information about their circumstances.
Ask follow-up questions to understand their full situation. Use emojis sparingly for warmth.
Focus on: school name, current aid amount, tuition cost, and any changed circumstances
(job loss, medical expenses, housing changes, family situations)."""


class OpenAIClient:
    """Wrapper around ``AsyncOpenAI`` with lazy credential checks."""

    provider_name = "openai"

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.logger: Any = logger.bind(component="openai_client")
        self._client: Optional[AsyncOpenAI] = None

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.settings.openai_api_key:
                raise ProviderNotConfiguredError(self.provider_name, "OPENAI_API_KEY")
            self._client = AsyncOpenAI(
                api_key=self.settings.openai_api_key, timeout=self.settings.provider_timeout
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def _complete(self, **params: Any) -> Any:
        try:
            return await self._get_client().chat.completions.create(
                model=self.settings.openai_model, **params
            )
        except OpenAIError as e:
            self.logger.error("OpenAI completion failed", error=str(e))
            raise ProviderError(
                f"OpenAI API error: {e}",
                provider=self.provider_name,
                status_code=getattr(e, "status_code", None),
            ) from e

    @staticmethod
    def _first_content(response: Any) -> str:
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    def _parse_json(self, content: str) -> Dict[str, Any]:
        try:
            parsed = json.loads(content or "{}")
        except json.JSONDecodeError as e:
            raise ProviderError(
                f"OpenAI returned invalid JSON: {e}", provider=self.provider_name
            ) from e
        if not isinstance(parsed, dict):
            raise ProviderError("OpenAI returned a non-object JSON payload", provider=self.provider_name)
        return parsed

    async def generate_chat_response(
        self, messages: List[ChatMessage], system_prompt: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Continue the intake conversation.

        Args:
            messages: Conversation so far
            system_prompt: Persona override; defaults to Finnie

        Returns:
            ``{"content": str, "usage": {"tokens": int}}``
        """
        payload = [{"role": "system", "content": system_prompt or FINNIE_SYSTEM_PROMPT}]
        payload.extend({"role": m.role, "content": m.content} for m in messages)

        response = await self._complete(messages=payload, temperature=0.7, max_tokens=1000)
        usage = getattr(response, "usage", None)

        return {
            "content": self._first_content(response),
            "usage": {"tokens": getattr(usage, "total_tokens", 0) or 0},
        }

    async def parse_document_with_vision(
        self, image_base64: str, document_type: str
    ) -> Dict[str, Any]:
        """Extract fields from a document image. Returns ``{fields, rawText}``."""
        system = (
            "You are a document parsing expert. Extract structured data from financial documents.\n"
            'Return a JSON object with "fields" array containing objects with "key", "value", '
            'and "confidence" (0-1).\n'
            'Also include "rawText" with the full text content.\n'
            f"For {document_type}, focus on relevant financial fields."
        )
        response = await self._complete(
            messages=[
                {"role": "system", "content": system},
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image_url",
                            "image_url": {"url": f"data:image/jpeg;base64,{image_base64}"},
                        },
                        {
                            "type": "text",
                            "text": f"Parse this {document_type} document and extract all "
                            "relevant financial information as structured JSON.",
                        },
                    ],
                },
            ],
            max_tokens=2000,
            response_format={"type": "json_object"},
        )

        result = self._parse_json(self._first_content(response))
        return {"fields": result.get("fields") or [], "rawText": result.get("rawText") or ""}

    async def extract_structured_data(self, text: str, schema: Dict[str, Any]) -> Dict[str, Any]:
        """Extract values from ``text`` matching a flat ``{name: type}`` schema."""
        response = await self._complete(
            messages=[
                {
                    "role": "system",
                    "content": "Extract structured data from the text according to this schema: "
                    f"{json.dumps(schema)}\nReturn valid JSON matching the schema.",
                },
                {"role": "user", "content": text},
            ],
            response_format={"type": "json_object"},
            max_tokens=1000,
        )
        return self._parse_json(self._first_content(response))

    async def generate_embeddings(self, texts: List[str]) -> List[List[float]]:
        """Embed each text with the configured embedding model."""
        try:
            response = await self._get_client().embeddings.create(
                model=self.settings.openai_embedding_model, input=texts
            )
        except OpenAIError as e:
            self.logger.error("OpenAI embedding failed", error=str(e))
            raise ProviderError(f"OpenAI API error: {e}", provider=self.provider_name) from e
        return [item.embedding for item in response.data]


# Global client instance
_openai_client: Optional[OpenAIClient] = None


def get_openai_client() -> OpenAIClient:
    """Get or create the global OpenAI client."""
    global _openai_client
    if _openai_client is None:
        _openai_client = OpenAIClient()
    return _openai_client


async def close_openai_client() -> None:
    """Close the global OpenAI client."""
    global _openai_client
    if _openai_client:
        await _openai_client.close()
        _openai_client = None
