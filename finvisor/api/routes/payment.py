"""
Payment Routes
==============

Service purchases, pricing and marketplace listings through the Fetch.ai
agent.
"""

from typing import Optional

from fastapi import APIRouter, status

from finvisor.api.responses import fail, ok, provider_failure
from finvisor.core.providers.base import ProviderError
from finvisor.core.providers.fetchai import (
    CHECKOUT_URL,
    get_fetchai_client,
    pricing_catalog,
    service_details,
)
from finvisor.models.schemas import PaymentRequest, ServiceOffer, ServiceType

router = APIRouter(prefix="/api/payment", tags=["Payment"])

VALID_SERVICES = {s.value for s in ServiceType}


@router.post("")
async def request_payment(request: PaymentRequest):
    """Open a payment request for a service."""
    if not request.user_id or not request.service:
        return fail("User ID and service required", status.HTTP_400_BAD_REQUEST)
    if request.service not in VALID_SERVICES:
        return fail("Invalid service type", status.HTTP_400_BAD_REQUEST)

    service = ServiceType(request.service)
    try:
        payment = await get_fetchai_client().request_payment(
            request.user_id, service, request.amount or 0
        )
    except ProviderError as e:
        return provider_failure(e, "Payment request")

    details = service_details(service)
    payment_id = payment.get("id")
    return ok(
        {
            "paymentId": payment_id,
            "amount": payment.get("amount"),
            "currency": payment.get("currency"),
            "status": payment.get("status"),
            "service": {
                "name": details["name"],
                "description": details["description"],
                "deliverables": details["deliverables"],
            },
            "checkoutUrl": CHECKOUT_URL.format(payment_id=payment_id),
        }
    )


@router.get("")
async def payment_info(paymentId: Optional[str] = None, action: Optional[str] = None):
    """Pricing catalog, agent analytics, or the confirmation state of a payment."""
    if action == "pricing":
        return ok({"services": pricing_catalog()})

    fetchai = get_fetchai_client()
    try:
        if action == "analytics":
            return ok(await fetchai.get_agent_analytics())

        if not paymentId:
            return fail("Payment ID required", status.HTTP_400_BAD_REQUEST)

        confirmation = await fetchai.confirm_payment(paymentId)
    except ProviderError as e:
        return provider_failure(e, "Payment confirmation", "Payment confirmation failed")

    return ok(
        {
            "confirmed": confirmation["confirmed"],
            "transactionHash": confirmation["transaction_hash"],
            "amount": confirmation["amount"],
            "status": "completed" if confirmation["confirmed"] else "pending",
        }
    )


@router.put("")
async def create_offer(offer: ServiceOffer):
    """List a service on the Agentverse marketplace."""
    try:
        listing = await get_fetchai_client().create_service_offer(offer)
    except ProviderError as e:
        return provider_failure(e, "Offer creation", "Offer creation failed")

    return ok({**listing, "status": "active"})
