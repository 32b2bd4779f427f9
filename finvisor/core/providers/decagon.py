"""
Decagon Provider
================

Conversational support sessions with intent detection and suggested actions.
"""

from typing import Any, Dict, List, Optional

from .base import ProviderClient

CONVERSATION_SETTINGS = {
    "tone": "empathetic",
    "language": "en",
    "include_sources": True,
    "enable_handoff": True,
}


class DecagonClient(ProviderClient):
    """Client for the Decagon conversations API."""

    provider_name = "decagon"

    def _base_url(self) -> str:
        return self.settings.decagon_api_url

    def missing_credentials(self) -> List[str]:
        return [] if self.settings.decagon_api_key else ["DECAGON_API_KEY"]

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.decagon_api_key}",
            "Content-Type": "application/json",
        }

    async def start_conversation(
        self, user_id: str, context: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Open a conversation for ``user_id``."""
        conversation = await self._request(
            "POST",
            "/conversations",
            json_body={
                "bot_id": self.settings.decagon_bot_id,
                "user_id": user_id,
                "context": context,
                "settings": CONVERSATION_SETTINGS,
            },
        )
        self.logger.info("Conversation started", conversation_id=conversation.get("id"))
        return conversation

    async def send_message(
        self, conversation_id: str, message: str, context: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Relay a user message and return the bot's answer.

        Returns:
            ``{"response": message, "intent": intent, "suggestedActions": [...]}``
        """
        reply = await self._request(
            "POST",
            f"/conversations/{conversation_id}/messages",
            json_body={"content": message, "context": context},
        )
        return {
            "response": reply.get("message") or {},
            "intent": reply.get("intent"),
            "suggestedActions": reply.get("suggested_actions") or [],
        }

    async def get_conversation(self, conversation_id: str) -> Dict[str, Any]:
        """Conversation record including its message history."""
        return await self._request("GET", f"/conversations/{conversation_id}")

    async def get_conversation_analytics(self, time_range: Dict[str, str]) -> Dict[str, Any]:
        """Conversation volume, resolution and satisfaction for ``{start, end}``."""
        return await self._request(
            "GET",
            "/analytics",
            params={"bot_id": self.settings.decagon_bot_id or "", **time_range},
        )


# Global client instance
_decagon_client: Optional[DecagonClient] = None


def get_decagon_client() -> DecagonClient:
    """Get or create the global Decagon client."""
    global _decagon_client
    if _decagon_client is None:
        _decagon_client = DecagonClient()
    return _decagon_client


async def close_decagon_client() -> None:
    """Close the global Decagon client."""
    global _decagon_client
    if _decagon_client:
        await _decagon_client.close()
        _decagon_client = None
