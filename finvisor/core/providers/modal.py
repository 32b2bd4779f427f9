"""
Modal Provider
==============

Remote GPU functions for batch document parsing, appeal success prediction
and letter enhancement.
"""

from typing import Any, Dict, List, Optional

from finvisor.models.schemas import StudentProfile
from .base import ProviderClient, ProviderError

DOCUMENT_PARSER = "finvisor-document-parser"
APPEAL_PREDICTOR = "finvisor-appeal-predictor"
LETTER_ENHANCER = "finvisor-letter-enhancer"

UNHEALTHY_STATUS: Dict[str, Any] = {
    "healthy": False,
    "active_functions": 0,
    "gpu_utilization": 0,
    "queue_depth": 0,
}


class ModalClient(ProviderClient):
    """Client for invoking deployed Modal functions."""

    provider_name = "modal"

    def _base_url(self) -> str:
        return self.settings.modal_api_url

    def missing_credentials(self) -> List[str]:
        return [] if self.settings.modal_token_id else ["MODAL_TOKEN_ID"]

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Token {self.settings.modal_token_id}:{self.settings.modal_token_secret}",
            "Content-Type": "application/json",
        }

    async def invoke_function(self, function_name: str, args: Dict[str, Any]) -> Dict[str, Any]:
        """Invoke a function. Returns the invocation record with ``result``."""
        self.logger.debug("Invoking Modal function", function=function_name)
        return await self._request(
            "POST", f"/functions/{function_name}/invoke", json_body={"args": args}
        )

    async def _result_of(self, function_name: str, args: Dict[str, Any]) -> Any:
        invocation = await self.invoke_function(function_name, args)
        if invocation.get("status") == "failed" or "result" not in invocation:
            raise ProviderError(
                f"Modal function {function_name} returned no result", provider=self.provider_name
            )
        return invocation["result"]

    async def parse_documents_batch(self, documents: List[Dict[str, str]]) -> List[Dict[str, Any]]:
        """OCR and parse ``{id, content, type}`` documents in one batch."""
        return await self._result_of(
            DOCUMENT_PARSER,
            {
                "documents": documents,
                "options": {"ocr_engine": "tesseract", "extract_tables": True, "detect_forms": True},
            },
        )

    async def predict_appeal_success(self, features: Dict[str, Any]) -> Dict[str, Any]:
        """
        Score the appeal's chance of success.

        Returns:
            ``{"success_probability", "confidence_interval", "key_factors"}``
        """
        return await self._result_of(
            APPEAL_PREDICTOR, {"features": features, "return_explanations": True}
        )

    async def enhance_appeal_letter(self, draft: str, profile: StudentProfile) -> Dict[str, Any]:
        """Polish a draft letter with the fine-tuned enhancer."""
        return await self._result_of(
            LETTER_ENHANCER,
            {
                "draft": draft,
                "profile": profile.model_dump(by_alias=True),
                "style": "professional_empathetic",
            },
        )

    async def get_status(self) -> Dict[str, Any]:
        """Infrastructure status; an unreachable service reports unhealthy zeros."""
        try:
            return await self._request("GET", "/status")
        except ProviderError as e:
            self.logger.warning("Modal status unavailable", error=str(e))
            return dict(UNHEALTHY_STATUS)


# Global client instance
_modal_client: Optional[ModalClient] = None


def get_modal_client() -> ModalClient:
    """Get or create the global Modal client."""
    global _modal_client
    if _modal_client is None:
        _modal_client = ModalClient()
    return _modal_client


async def close_modal_client() -> None:
    """Close the global Modal client."""
    global _modal_client
    if _modal_client:
        await _modal_client.close()
        _modal_client = None
