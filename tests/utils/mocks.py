"""
Test Mocks
===========

Stand-ins for aiohttp sessions and SDK responses used by the provider
clients.
"""

from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock


def mock_response(
    status: int = 200, json_data: Any = None, text: str = ""
) -> MagicMock:
    """aiohttp response usable as ``async with session.request(...) as response``."""
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=json_data)
    response.text = AsyncMock(return_value=text)
    return response


def _context(response: MagicMock) -> MagicMock:
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)
    return context


def mock_session(*responses: MagicMock) -> MagicMock:
    """
    Session whose ``request``, ``get`` and ``post`` hand out ``responses`` in order.

    Each call consumes the next response regardless of the method used.
    """
    queue = list(responses)

    def _next(*args: Any, **kwargs: Any) -> MagicMock:
        return _context(queue.pop(0))

    session = MagicMock()
    session.closed = False
    session.close = AsyncMock()
    session.request = MagicMock(side_effect=_next)
    session.get = MagicMock(side_effect=_next)
    session.post = MagicMock(side_effect=_next)
    return session


def text_block(text: str) -> SimpleNamespace:
    return SimpleNamespace(type="text", text=text)


def thinking_block(thinking: str) -> SimpleNamespace:
    return SimpleNamespace(type="thinking", thinking=thinking)


def anthropic_message(*blocks: SimpleNamespace) -> SimpleNamespace:
    """Anthropic Messages API response."""
    return SimpleNamespace(content=list(blocks))


def openai_completion(content: Optional[str], total_tokens: int = 0) -> SimpleNamespace:
    """OpenAI chat completion with a single choice."""
    choices: List[SimpleNamespace] = []
    if content is not None:
        choices.append(SimpleNamespace(message=SimpleNamespace(content=content)))
    return SimpleNamespace(choices=choices, usage=SimpleNamespace(total_tokens=total_tokens))


def perplexity_answer(content: str, citations: Optional[List[Any]] = None) -> Dict[str, Any]:
    """Perplexity chat completion payload."""
    return {
        "choices": [{"message": {"content": content}}],
        "citations": citations or [],
    }
