"""
Wizard Controller
=================

Linear session state machine over the step scripts. A step must finish
playing before the session may move on, and the session never moves
backwards.
"""

import asyncio
import uuid
from typing import AsyncIterator, Dict, List, Optional

from finvisor.config.logging import get_logger
from finvisor.models.schemas import RevealedItem, StepState, StepStatus, WizardSnapshot
from .script import StepScript
from .scripts import build_scripts
from .timeline import RevealEvent, Sleep, play_script

logger = get_logger(__name__)


class WizardStateError(Exception):
    """Raised when an operation is not allowed in the session's current state."""


class WizardSession:
    """One walkthrough of the scripted demo."""

    def __init__(
        self,
        session_id: str,
        scripts: Optional[List[StepScript]] = None,
        pace: float = 1.0,
        sleep: Sleep = asyncio.sleep,
    ):
        self.session_id = session_id
        self.scripts = scripts if scripts is not None else build_scripts()
        if not self.scripts:
            raise ValueError("A wizard needs at least one step")
        self.pace = pace
        self.sleep = sleep
        self.current_step = 0
        self.steps = [StepState(index=i, label=s.label) for i, s in enumerate(self.scripts)]
        self.logger = logger.bind(session_id=session_id)

        if self.is_final:
            self._reveal_all()

    @property
    def total_steps(self) -> int:
        return len(self.scripts)

    @property
    def is_final(self) -> bool:
        return self.current_step == self.total_steps - 1

    @property
    def state(self) -> StepState:
        return self.steps[self.current_step]

    @property
    def is_playing(self) -> bool:
        return self.state.status == StepStatus.PLAYING

    @property
    def can_continue(self) -> bool:
        return self.state.status == StepStatus.COMPLETE and not self.is_final

    def _record(self, state: StepState, event: RevealEvent) -> RevealedItem:
        item = event.item
        revealed = RevealedItem(
            index=event.index,
            kind=item.kind,
            phase=event.phase,
            text=item.text,
            result=item.result,
            speaker=item.speaker,
            icon=item.icon,
            color=item.color,
            data=item.data,
        )
        if state.items and state.items[-1].index == event.index:
            state.items[-1] = revealed
        else:
            state.items.append(revealed)
        return revealed

    def _reveal_all(self) -> None:
        """Complete the current step at once, each item in its last phase."""
        state = self.state
        script = self.scripts[self.current_step]
        state.items = []
        for index, item in enumerate(script.items):
            last_phase = item.phases[-1].name if item.phases else "revealed"
            self._record(
                state, RevealEvent(step=script.index, index=index, phase=last_phase, item=item)
            )
        state.status = StepStatus.COMPLETE

    async def play_current_step(self) -> AsyncIterator[RevealEvent]:
        """
        Play the current step's script.

        The step is marked playing for the duration and complete after the
        last event. A completed step yields nothing; if the consumer stops
        early the step returns to pending so it can be played again.

        Raises:
            WizardStateError: The step is already being played
        """
        state = self.state
        if state.status == StepStatus.PLAYING:
            raise WizardStateError(f"Step '{state.label}' is already playing")
        if state.status == StepStatus.COMPLETE:
            return

        state.status = StepStatus.PLAYING
        state.items = []
        self.logger.debug("Step started", step=state.index, label=state.label)

        finished = False
        try:
            async for event in play_script(self.scripts[self.current_step], self.pace, self.sleep):
                self._record(state, event)
                yield event
            finished = True
        finally:
            if finished:
                state.status = StepStatus.COMPLETE
                self.logger.info("Step completed", step=state.index, label=state.label)
            else:
                state.status = StepStatus.PENDING
                state.items = []
                self.logger.warning("Step interrupted", step=state.index, label=state.label)

    def advance(self) -> WizardSnapshot:
        """
        Move to the next step.

        Raises:
            WizardStateError: Already on the final step, or the current step
                has not finished playing
        """
        if self.is_final:
            raise WizardStateError("Already on the final step")
        if self.state.status != StepStatus.COMPLETE:
            raise WizardStateError(f"Step '{self.state.label}' has not finished playing")

        self.current_step += 1
        if self.is_final:
            self._reveal_all()

        self.logger.info("Advanced", step=self.current_step, label=self.state.label)
        return self.snapshot()

    def snapshot(self) -> WizardSnapshot:
        return WizardSnapshot(
            session_id=self.session_id,
            current_step=self.current_step,
            total_steps=self.total_steps,
            label=self.state.label,
            steps=[step.model_copy(deep=True) for step in self.steps],
            can_continue=self.can_continue,
            is_final=self.is_final,
        )


class WizardSessionStore:
    """In-process registry of wizard sessions."""

    def __init__(self, sleep: Sleep = asyncio.sleep):
        self.sleep = sleep
        self._sessions: Dict[str, WizardSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, pace: float = 1.0) -> WizardSession:
        session = WizardSession(uuid.uuid4().hex, pace=pace, sleep=self.sleep)
        self._sessions[session.session_id] = session
        logger.info("Wizard session created", session_id=session.session_id)
        return session

    def get(self, session_id: str) -> WizardSession:
        """Raises KeyError for unknown ids."""
        return self._sessions[session_id]

    def delete(self, session_id: str) -> None:
        """Raises KeyError for unknown ids."""
        del self._sessions[session_id]
        logger.info("Wizard session deleted", session_id=session_id)

    def clear(self) -> None:
        self._sessions.clear()


# Global store instance
_wizard_store: Optional[WizardSessionStore] = None


def get_wizard_store() -> WizardSessionStore:
    """Get or create the global session store."""
    global _wizard_store
    if _wizard_store is None:
        _wizard_store = WizardSessionStore()
    return _wizard_store
