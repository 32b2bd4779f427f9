"""
Unit Tests for SSE Events
=========================
"""

import json

import pytest

from finvisor.api.sse.events import (
    SSEEventType,
    create_item_revealed_event,
    create_step_completed_event,
    create_step_started_event,
    create_stream_error_event,
    format_sse_event,
)
from finvisor.core.wizard.controller import WizardSession
from finvisor.core.wizard.script import ScriptItem
from finvisor.core.wizard.timeline import RevealEvent
from finvisor.models.schemas import StepState

from tests.utils.assertions import parse_sse


@pytest.mark.unit
class TestSSEFormatting:
    """Test the SSE wire format."""

    def test_format_with_id_and_retry(self):
        message = format_sse_event("step.started", {"step": 0}, event_id="e1", retry_after=3000)

        assert message == 'id: e1\nevent: step.started\nretry: 3000\ndata: {"step":0}\n\n'

    def test_format_keeps_unicode(self):
        message = format_sse_event("item.revealed", {"text": "💙 −34.2%"})

        assert message.startswith("event: item.revealed\n")
        assert "💙 −34.2%" in message


@pytest.mark.unit
class TestWizardEvents:
    """Test event builders."""

    def test_step_started(self):
        event = create_step_started_event("s1", StepState(index=2, label="Gap Strategy"), 11)

        assert event.event_type == SSEEventType.STEP_STARTED
        assert event.data["label"] == "Gap Strategy"
        assert event.data["itemCount"] == 11

    def test_item_revealed_payload(self):
        item = ScriptItem(kind="reasoning", text="Checking income change...", result="34% drop", color="#34d399")
        event = create_item_revealed_event("s1", RevealEvent(step=2, index=0, phase="done", item=item))

        [record] = parse_sse(event.format_sse())

        assert record["event"] == "item.revealed"
        assert record["id"] == event.event_id
        assert record["data"]["phase"] == "done"
        assert record["data"]["result"] == "34% drop"
        assert record["data"]["speaker"] is None

    def test_step_completed_serializes_snapshot_with_camel_case(self):
        session = WizardSession("s1", pace=0)
        event = create_step_completed_event("s1", session.snapshot())

        data = json.loads(event.format_sse().split("data: ", 1)[1])

        assert data["snapshot"]["sessionId"] == "s1"
        assert data["snapshot"]["totalSteps"] == 8
        assert data["canContinue"] is False

    def test_stream_error(self):
        event = create_stream_error_event("s1", "Step 'Research' is already playing")

        assert event.event_type == SSEEventType.STREAM_ERROR
        assert event.data == {"sessionId": "s1", "error": "Step 'Research' is already playing"}
