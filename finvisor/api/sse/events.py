"""
SSE Events
==========

Server-Sent Events types for the wizard stream and the SSE wire formatting.
"""

from typing import Optional, Dict, Any, List
from datetime import datetime, timezone
from enum import Enum
import json
import uuid

from fastapi.encoders import jsonable_encoder

from finvisor.core.wizard.timeline import RevealEvent
from finvisor.models.schemas import StepState, WizardSnapshot


class SSEEventType(str, Enum):
    """Server-Sent Events event types."""

    STEP_STARTED = "step.started"
    ITEM_REVEALED = "item.revealed"
    STEP_COMPLETED = "step.completed"
    STREAM_ERROR = "stream.error"


class SSEEvent:
    """SSE event with proper formatting."""

    def __init__(
        self,
        event_type: SSEEventType,
        data: Dict[str, Any],
        session_id: str,
        event_id: Optional[str] = None,
        retry_after: Optional[int] = None,
    ):
        self.event_type = event_type
        self.data = data
        self.session_id = session_id
        self.event_id = event_id or str(uuid.uuid4())
        self.retry_after = retry_after
        self.timestamp = datetime.now(timezone.utc)

    def format_sse(self) -> str:
        """Format event for SSE protocol."""
        return format_sse_event(
            event_type=self.event_type.value,
            data=jsonable_encoder(self.data, by_alias=True),
            event_id=self.event_id,
            retry_after=self.retry_after,
        )


def format_sse_event(
    event_type: str,
    data: Dict[str, Any],
    event_id: Optional[str] = None,
    retry_after: Optional[int] = None,
) -> str:
    """
    Format data for Server-Sent Events protocol.

    Args:
        event_type: Event type identifier
        data: Event data dictionary
        event_id: Optional event ID for client-side event tracking
        retry_after: Optional retry interval in milliseconds

    Returns:
        Formatted SSE message string
    """
    lines: List[str] = []

    if event_id:
        lines.append(f"id: {event_id}")

    lines.append(f"event: {event_type}")

    if retry_after:
        lines.append(f"retry: {retry_after}")

    data_json = json.dumps(data, default=str, ensure_ascii=False, separators=(",", ":"))
    lines.append(f"data: {data_json}")

    # SSE protocol requires double newline at end
    lines.append("")
    lines.append("")

    return "\n".join(lines)


def create_step_started_event(session_id: str, step: StepState, item_count: int) -> SSEEvent:
    """Create step started event."""
    return SSEEvent(
        event_type=SSEEventType.STEP_STARTED,
        data={
            "sessionId": session_id,
            "step": step.index,
            "label": step.label,
            "itemCount": item_count,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
        session_id=session_id,
    )


def create_item_revealed_event(session_id: str, event: RevealEvent) -> SSEEvent:
    """Create item revealed event."""
    item = event.item
    return SSEEvent(
        event_type=SSEEventType.ITEM_REVEALED,
        data={
            "sessionId": session_id,
            "step": event.step,
            "index": event.index,
            "phase": event.phase,
            "kind": item.kind,
            "text": item.text,
            "result": item.result,
            "speaker": item.speaker,
            "icon": item.icon,
            "color": item.color,
            "data": item.data,
        },
        session_id=session_id,
    )


def create_step_completed_event(session_id: str, snapshot: WizardSnapshot) -> SSEEvent:
    """Create step completed event carrying the updated session snapshot."""
    return SSEEvent(
        event_type=SSEEventType.STEP_COMPLETED,
        data={
            "sessionId": session_id,
            "step": snapshot.current_step,
            "canContinue": snapshot.can_continue,
            "snapshot": snapshot,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
        session_id=session_id,
    )


def create_stream_error_event(session_id: str, error: str) -> SSEEvent:
    """Create stream error event."""
    return SSEEvent(
        event_type=SSEEventType.STREAM_ERROR,
        data={"sessionId": session_id, "error": error},
        session_id=session_id,
    )
