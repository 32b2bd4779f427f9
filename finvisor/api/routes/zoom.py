"""
Zoom Routes
===========

Advisor meetings, recorded transcripts and summaries, live transcript
analysis and the Zoom webhook receiver.
The demo service answers while ``zoom_demo_mode`` is on.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, status
from fastapi.responses import JSONResponse

from finvisor.api.responses import fail, ok, provider_failure
from finvisor.config.logging import get_logger
from finvisor.config.settings import get_settings
from finvisor.core.providers.anthropic_client import get_anthropic_client
from finvisor.core.providers.base import ProviderError
from finvisor.core.providers.zoom import (
    DEMO_MEETING_ID,
    get_zoom_client,
    get_zoom_demo_service,
    process_webhook_event,
)
from finvisor.models.schemas import TranscriptAnalysisRequest, TranscriptEntry, ZoomMeetingRequest

logger = get_logger(__name__)

router = APIRouter(prefix="/api/zoom", tags=["Zoom"])


def _demo_mode() -> bool:
    return get_settings().zoom_demo_mode


@router.post("")
async def create_meeting(request: Optional[ZoomMeetingRequest] = None):
    """Create an advisor meeting."""
    request = request or ZoomMeetingRequest()

    if _demo_mode():
        return ok(
            get_zoom_demo_service().create_meeting(
                request.topic, request.duration, request.scheduled_time
            )
        )

    try:
        meeting = await get_zoom_client().create_meeting(
            request.topic, request.duration, request.scheduled_time
        )
    except ProviderError as e:
        return provider_failure(e, "Meeting creation")

    return ok(meeting)


def summary_from_advice(advice: Dict[str, Any]) -> Dict[str, Any]:
    """Shape advisor suggestions like a meeting summary."""
    insight = advice.get("insight")
    action_items = [str(item) for item in advice.get("actionItems") or []]
    return {
        "summary": advice.get("suggestion", ""),
        "keyPoints": [insight] if insight else [],
        "actionItems": action_items,
        "followUpNeeded": bool(action_items),
    }


async def _transcript(meeting_id: Optional[str]):
    if _demo_mode():
        return ok(
            {
                "meetingId": meeting_id or DEMO_MEETING_ID,
                "transcript": get_zoom_demo_service().get_transcript(meeting_id),
            }
        )

    if not meeting_id:
        return fail("Meeting ID required", status.HTTP_400_BAD_REQUEST)

    try:
        cues = await get_zoom_client().get_transcript(meeting_id)
    except ProviderError as e:
        return provider_failure(e, "Transcript download")

    return ok({"meetingId": meeting_id, "transcript": cues})


async def _summary(meeting_id: Optional[str]):
    if _demo_mode():
        return ok(get_zoom_demo_service().summarize(meeting_id))

    if not meeting_id:
        return fail("Meeting ID required", status.HTTP_400_BAD_REQUEST)

    try:
        cues = await get_zoom_client().get_transcript(meeting_id)
        if not cues:
            return fail("No transcript available for this meeting", status.HTTP_404_NOT_FOUND)

        entries = [TranscriptEntry(speaker=c["speaker_name"], text=c["text"]) for c in cues]
        advice = await get_anthropic_client().advisor_response(entries, "")
    except ProviderError as e:
        return provider_failure(e, "Meeting summary")

    return ok(summary_from_advice(advice))


@router.get("")
async def get_meeting(meetingId: Optional[str] = None, action: Optional[str] = None):
    """Meeting details; ``action=transcript`` or ``action=summary`` for the recording."""
    if action == "transcript":
        return await _transcript(meetingId)
    if action == "summary":
        return await _summary(meetingId)
    if action not in (None, "meeting"):
        return fail("Invalid action", status.HTTP_400_BAD_REQUEST)

    if _demo_mode():
        return ok(get_zoom_demo_service().get_meeting(meetingId))

    if not meetingId:
        return fail("Meeting ID required", status.HTTP_400_BAD_REQUEST)

    try:
        meeting = await get_zoom_client().get_meeting(meetingId)
    except ProviderError as e:
        return provider_failure(e, "Meeting lookup")

    return ok(meeting)


@router.put("")
async def analyze_transcript(request: TranscriptAnalysisRequest):
    """Suggestions for the advisor from the live transcript."""
    if _demo_mode():
        return ok(get_zoom_demo_service().analyze_transcript(request.transcript))

    if not request.transcript:
        return fail("Transcript required", status.HTTP_400_BAD_REQUEST)

    try:
        advice = await get_anthropic_client().advisor_response(
            request.transcript, request.student_context
        )
    except ProviderError as e:
        return provider_failure(e, "Transcript analysis")

    return ok(advice)


@router.patch("")
async def webhook(payload: Dict[str, Any] = Body(default={})):
    """
    Zoom webhook receiver.

    URL validation challenges are answered with the bare
    ``{plainToken, encryptedToken}`` object Zoom expects.
    """
    if _demo_mode():
        return ok(get_zoom_demo_service().process_webhook(payload))

    try:
        result = process_webhook_event(payload, get_settings().zoom_webhook_secret_token)
    except ValueError as e:
        logger.error("Webhook rejected", error=str(e))
        return fail(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

    if "encryptedToken" in result:
        return JSONResponse(status_code=status.HTTP_200_OK, content=result)

    logger.info("Zoom webhook received", zoom_event=result["event"], meeting_id=result["meetingId"])
    return ok(result)
