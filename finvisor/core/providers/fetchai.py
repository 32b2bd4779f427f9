"""
Fetch.ai Provider
=================

Payments and marketplace listings through the Finvisor agent registered on
Agentverse.
"""

from typing import Any, Dict, List, Optional

from finvisor.models.schemas import ServiceOffer, ServiceType
from .base import ProviderClient

# Agentverse listing pages
LISTING_URL = "https://agentverse.ai/services/{offer_id}"
CHECKOUT_URL = "https://agentverse.ai/pay/{payment_id}"

SERVICE_PRICES: Dict[ServiceType, float] = {
    ServiceType.BASIC_APPEAL: 9,
    ServiceType.PRO_APPEAL: 29,
    ServiceType.PREMIUM_APPEAL: 49,
    ServiceType.ADVISOR_SESSION: 15,
}

FINVISOR_SERVICES: Dict[str, Dict[str, Any]] = {
    "basic": {
        "name": "Basic Appeal Package",
        "description": "AI-powered intake, document parsing, gap analysis, and basic appeal letter",
        "price": 9,
        "deliverables": [
            "Personalized intake conversation",
            "Document parsing and analysis",
            "Gap strategy analysis",
            "Basic appeal letter template",
        ],
    },
    "pro": {
        "name": "Pro Appeal Package",
        "description": "Everything in Basic plus research citations, auto-submission, and advisor session",
        "price": 29,
        "deliverables": [
            "Everything in Basic",
            "Research citations and data",
            "Automated submission via Browserbase",
            "15-minute Zoom advisor session",
        ],
    },
    "premium": {
        "name": "Premium Appeal Package",
        "description": "Full-service appeal with counter-offer templates and priority support",
        "price": 49,
        "deliverables": [
            "Everything in Pro",
            "Counter-offer negotiation templates",
            "Multi-round strategy support",
            "Priority advisor access",
            "Appeal tracking dashboard",
        ],
    },
}


def service_details(service: ServiceType) -> Dict[str, Any]:
    """Catalog entry for a purchasable service; unknown tiers map to basic."""
    key = service.value.replace("_appeal", "")
    return FINVISOR_SERVICES.get(key, FINVISOR_SERVICES["basic"])


def pricing_catalog() -> List[Dict[str, Any]]:
    """Catalog as a list with ``<tier>_appeal`` ids."""
    return [{"id": f"{key}_appeal", **value} for key, value in FINVISOR_SERVICES.items()]


class FetchAIClient(ProviderClient):
    """Client for the Agentverse REST API."""

    provider_name = "fetchai"

    def _base_url(self) -> str:
        return self.settings.fetchai_api_url

    def missing_credentials(self) -> List[str]:
        return [] if self.settings.fetchai_api_key else ["FETCHAI_API_KEY"]

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.fetchai_api_key}",
            "Content-Type": "application/json",
        }

    async def request_payment(
        self, user_id: str, service: ServiceType, amount: float = 0
    ) -> Dict[str, Any]:
        """
        Ask the agent to collect payment for a service.

        Args:
            user_id: Paying user
            service: Service being purchased
            amount: Custom amount; 0 uses the list price

        Returns:
            Payment request record (``id``, ``amount``, ``currency``, ``status``)
        """
        payment = await self._request(
            "POST",
            "/payments/request",
            json_body={
                "recipient": self.settings.fetchai_agent_address,
                "amount": amount or SERVICE_PRICES[service],
                "currency": "USD",
                "service": service.value,
                "metadata": {
                    "userId": user_id,
                    "service_description": f"Finvisor {service.value.replace('_', ' ', 1)} service",
                },
            },
        )
        self.logger.info("Payment requested", payment_id=payment.get("id"), service=service.value)
        return payment

    async def confirm_payment(self, payment_id: str) -> Dict[str, Any]:
        """Check whether a payment completed."""
        payment = await self._request("GET", f"/payments/{payment_id}")
        return {
            "confirmed": payment.get("status") == "completed",
            "transaction_hash": payment.get("transaction_hash"),
            "amount": payment.get("amount"),
        }

    async def create_service_offer(self, offer: ServiceOffer) -> Dict[str, str]:
        """List a service on the Agentverse marketplace."""
        listing = await self._request(
            "POST",
            "/marketplace/offers",
            json_body={
                "agent": self.settings.fetchai_agent_address,
                "service": offer.model_dump(exclude_none=True),
                "availability": "always",
                "auto_accept": True,
            },
        )
        offer_id = listing.get("id", "")
        return {"offerId": offer_id, "listingUrl": LISTING_URL.format(offer_id=offer_id)}

    async def get_agent_analytics(self) -> Dict[str, Any]:
        """Revenue, completed services, ratings and recent transactions."""
        return await self._request(
            "GET", f"/agents/{self.settings.fetchai_agent_address}/analytics"
        )


# Global client instance
_fetchai_client: Optional[FetchAIClient] = None


def get_fetchai_client() -> FetchAIClient:
    """Get or create the global Fetch.ai client."""
    global _fetchai_client
    if _fetchai_client is None:
        _fetchai_client = FetchAIClient()
    return _fetchai_client


async def close_fetchai_client() -> None:
    """Close the global Fetch.ai client."""
    global _fetchai_client
    if _fetchai_client:
        await _fetchai_client.close()
        _fetchai_client = None
