"""
Chat Routes
===========

Finnie intake conversation, answered by OpenAI or relayed to Decagon.
"""

from typing import Optional

from fastapi import APIRouter, status

from finvisor.api.responses import fail, ok, provider_failure
from finvisor.config.logging import get_logger
from finvisor.config.settings import get_settings
from finvisor.core.providers.base import ProviderError
from finvisor.core.providers.decagon import get_decagon_client
from finvisor.core.providers.openai_client import get_openai_client
from finvisor.models.schemas import ChatRequest

logger = get_logger(__name__)

router = APIRouter(prefix="/api/chat", tags=["Chat"])


@router.post("")
async def chat(request: ChatRequest):
    """Answer the latest message of an intake conversation."""
    if not request.messages:
        return fail("Messages are required", status.HTTP_400_BAD_REQUEST)

    try:
        if request.use_decagon and get_settings().is_configured("decagon"):
            decagon = get_decagon_client()
            conversation_id = request.conversation_id

            if not conversation_id and request.user_id:
                conversation = await decagon.start_conversation(request.user_id)
                conversation_id = conversation.get("id")

            if conversation_id:
                reply = await decagon.send_message(conversation_id, request.messages[-1].content)
                return ok(
                    {
                        "content": reply["response"].get("content", ""),
                        "conversationId": conversation_id,
                        "intent": reply["intent"],
                        "suggestedActions": reply["suggestedActions"],
                        "provider": "decagon",
                    }
                )

        response = await get_openai_client().generate_chat_response(request.messages)
    except ProviderError as e:
        return provider_failure(e, "Chat")

    return ok({"content": response["content"], "usage": response["usage"], "provider": "openai"})


@router.get("")
async def get_conversation(conversationId: Optional[str] = None):
    """Conversation history; empty unless Decagon keeps it."""
    if not conversationId:
        return fail("Conversation ID required", status.HTTP_400_BAD_REQUEST)

    messages = []
    if get_settings().is_configured("decagon"):
        try:
            conversation = await get_decagon_client().get_conversation(conversationId)
        except ProviderError as e:
            return provider_failure(e, "Conversation fetch")
        messages = conversation.get("messages") or []

    return ok({"conversationId": conversationId, "messages": messages})
