"""
Wizard Routes
=============

Session lifecycle for the scripted walkthrough and the SSE stream that
plays the current step.
"""

from typing import AsyncGenerator

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import StreamingResponse

from finvisor.api.responses import fail, ok
from finvisor.api.sse.events import (
    create_item_revealed_event,
    create_step_completed_event,
    create_step_started_event,
    create_stream_error_event,
)
from finvisor.config.logging import get_logger
from finvisor.config.settings import get_settings
from finvisor.core.wizard.controller import WizardSession, WizardStateError, get_wizard_store
from finvisor.core.wizard.scripts import STEP_LABELS

logger = get_logger(__name__)

router = APIRouter(prefix="/api/wizard", tags=["Wizard"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _session(session_id: str) -> WizardSession:
    try:
        return get_wizard_store().get(session_id)
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Wizard session not found")


@router.get("/steps")
async def list_steps():
    """Step labels in walkthrough order."""
    return ok({"steps": [{"index": i, "label": label} for i, label in enumerate(STEP_LABELS)]})


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def create_session():
    """Start a walkthrough at the first step."""
    session = get_wizard_store().create(pace=get_settings().wizard_pace)
    return ok(session.snapshot(), status_code=status.HTTP_201_CREATED)


@router.get("/sessions/{session_id}")
async def get_session(session_id: str):
    return ok(_session(session_id).snapshot())


@router.get("/sessions/{session_id}/stream")
async def stream_step(session_id: str):
    """
    Play the current step as Server-Sent Events.

    Emits ``step.started``, one ``item.revealed`` per phase transition and
    ``step.completed`` with the updated snapshot.
    """
    session = _session(session_id)
    if session.is_playing:
        return fail("Step is already playing", status.HTTP_409_CONFLICT)

    async def event_generator() -> AsyncGenerator[str, None]:
        script = session.scripts[session.current_step]
        yield create_step_started_event(session_id, session.state, len(script.items)).format_sse()

        try:
            async for event in session.play_current_step():
                yield create_item_revealed_event(session_id, event).format_sse()
        except WizardStateError as e:
            logger.warning("Wizard stream refused", session_id=session_id, error=str(e))
            yield create_stream_error_event(session_id, str(e)).format_sse()
            return

        yield create_step_completed_event(session_id, session.snapshot()).format_sse()

    return StreamingResponse(
        event_generator(), media_type="text/event-stream", headers=SSE_HEADERS
    )


@router.post("/sessions/{session_id}/next")
async def next_step(session_id: str):
    """Advance to the next step once the current one has finished playing."""
    session = _session(session_id)
    try:
        snapshot = session.advance()
    except WizardStateError as e:
        return fail(str(e), status.HTTP_409_CONFLICT, data={"snapshot": session.snapshot()})

    return ok(snapshot)


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str):
    _session(session_id)
    get_wizard_store().delete(session_id)
    return ok({"sessionId": session_id, "deleted": True})
