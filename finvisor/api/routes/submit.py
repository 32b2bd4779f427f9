"""
Submit Routes
=============

Portal submission through a Browserbase browser session.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, status

from finvisor.api.responses import fail, ok, provider_failure
from finvisor.core.appeal.portals import SUBMISSION_NEXT_STEPS, dry_run_plan
from finvisor.core.providers.base import ProviderError
from finvisor.core.providers.browserbase import get_browserbase_client
from finvisor.models.schemas import PortalScrapeRequest, SubmitRequest

router = APIRouter(prefix="/api/submit", tags=["Submit"])


@router.post("")
async def submit(request: SubmitRequest):
    """Submit the appeal, or describe the automation when ``dryRun`` is set."""
    if not (
        request.portal_url
        and request.credentials
        and request.appeal_data
        and request.appeal_data.letter_content
    ):
        return fail(
            "Portal URL, credentials, and appeal letter required", status.HTTP_400_BAD_REQUEST
        )

    if request.options.dry_run:
        return ok(dry_run_plan(request.portal_url))

    result = await get_browserbase_client().submit_financial_aid_appeal(
        request.portal_url, request.credentials, request.appeal_data
    )

    if not result["success"]:
        return fail(
            result.get("error") or "Submission failed",
            status.HTTP_400_BAD_REQUEST,
            data={"screenshots": result["screenshots"]},
        )

    return ok(
        {
            "confirmationNumber": result["confirmationNumber"],
            "submittedAt": datetime.now(timezone.utc).isoformat(),
            "screenshots": result["screenshots"] if request.options.take_screenshots else [],
            "nextSteps": SUBMISSION_NEXT_STEPS,
        },
        metadata={"provider": "browserbase"},
    )


@router.get("")
async def submission_status(sessionId: Optional[str] = None):
    """Status of a submission session."""
    if not sessionId:
        return fail("Session ID required", status.HTTP_400_BAD_REQUEST)

    try:
        result = await get_browserbase_client().check_submission_status(sessionId)
    except ProviderError as e:
        return provider_failure(e, "Status check", "Status check failed")

    return ok(result)


@router.put("")
async def scrape_portal(request: PortalScrapeRequest):
    """Read the aid package, deadlines and messages from the portal."""
    if not (request.portal_url and request.credentials):
        return fail("Portal URL and credentials required", status.HTTP_400_BAD_REQUEST)

    try:
        info = await get_browserbase_client().scrape_portal_info(
            request.portal_url, request.credentials
        )
    except (ProviderError, KeyError) as e:
        return provider_failure(e, "Portal scrape", "Portal scrape failed")

    return ok(info)
