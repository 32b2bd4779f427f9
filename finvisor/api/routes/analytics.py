"""
Analytics Routes
================

Operator dashboard data aggregated from Fetch.ai, Modal and Decagon. Each
source is optional and settles independently.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import APIRouter, Response

from finvisor import __version__
from finvisor.api.responses import ok
from finvisor.config.logging import get_logger
from finvisor.config.settings import get_settings
from finvisor.core.providers.decagon import get_decagon_client
from finvisor.core.providers.fetchai import get_fetchai_client
from finvisor.core.providers.modal import get_modal_client

logger = get_logger(__name__)

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])

DEFAULT_WINDOW = timedelta(days=30)

# Until outcome tracking exists these are the published figures
SUCCESS_RATE = 68
AVG_AID_INCREASE = 8420

SPONSOR_USAGE = {
    "openai": "Chat, Document Parsing",
    "anthropic": "Strategy, Appeal Generation",
    "perplexity": "Research",
    "browserbase": "Auto-Submit",
    "zoom": "Advisor Meetings",
    "modal": "Inference",
    "fetchai": "Payments",
    "decagon": "Conversational UX",
    "vercel": "Deployment",
}


async def _settle(
    provider: str, call: Callable[[], Awaitable[Dict[str, Any]]]
) -> Optional[Dict[str, Any]]:
    """Run ``call`` if the provider is configured; any failure or non-object answer becomes None."""
    if not get_settings().is_configured(provider):
        return None
    try:
        result = await call()
    except Exception as e:
        logger.warning("Analytics source unavailable", provider=provider, error=str(e))
        return None

    if not isinstance(result, dict):
        logger.warning(
            "Analytics source returned unexpected data", provider=provider, type=type(result).__name__
        )
        return None
    return result


def _conversations(data: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not data:
        return None
    return {
        "total": data.get("totalConversations"),
        "resolved": data.get("resolvedCount"),
        "escalated": data.get("escalatedCount"),
        "avgResolutionTime": data.get("averageResolutionTime"),
        "satisfaction": data.get("satisfactionScore"),
        "topIntents": data.get("topIntents"),
    }


def _infrastructure(data: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not data:
        return None
    return {
        "healthy": data.get("healthy"),
        "activeFunctions": data.get("active_functions"),
        "gpuUtilization": data.get("gpu_utilization"),
        "queueDepth": data.get("queue_depth"),
    }


def _payments(data: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not data:
        return None
    return {
        "totalRevenue": data.get("totalRevenue"),
        "completedServices": data.get("completedServices"),
        "activeRequests": data.get("activeRequests"),
        "averageRating": data.get("averageRating"),
        "recentTransactions": data.get("recentTransactions"),
    }


def _sponsors(modal_status: Optional[Dict[str, Any]]) -> Dict[str, Dict[str, str]]:
    modal_active = bool(modal_status and modal_status.get("healthy"))
    return {
        name: {
            "status": "active" if name != "modal" or modal_active else "inactive",
            "usage": usage,
        }
        for name, usage in SPONSOR_USAGE.items()
    }


@router.get("")
async def analytics(start: Optional[str] = None, end: Optional[str] = None):
    """Dashboard analytics for ``start``..``end`` (default: the last 30 days)."""
    now = datetime.now(timezone.utc)
    time_range = {
        "start": start or (now - DEFAULT_WINDOW).isoformat(),
        "end": end or now.isoformat(),
    }

    agent, modal_status, conversations = await asyncio.gather(
        _settle("fetchai", get_fetchai_client().get_agent_analytics),
        _settle("modal", get_modal_client().get_status),
        _settle("decagon", lambda: get_decagon_client().get_conversation_analytics(time_range)),
    )

    overview = {
        "totalAppeals": (agent or {}).get("completedServices") or 0,
        "successRate": SUCCESS_RATE,
        "avgAidIncrease": AVG_AID_INCREASE,
        "revenue": (agent or {}).get("totalRevenue") or 0,
        "activeUsers": (conversations or {}).get("totalConversations") or 0,
    }

    return ok(
        {
            "overview": overview,
            "conversations": _conversations(conversations),
            "infrastructure": _infrastructure(modal_status),
            "payments": _payments(agent),
            "sponsors": _sponsors(modal_status),
        },
        metadata={"generatedAt": now.isoformat(), "timeRange": time_range},
    )


@router.head("")
async def analytics_health() -> Response:
    """Liveness probe for the analytics endpoint."""
    return Response(status_code=200, headers={"X-Status": "healthy", "X-Version": __version__})
