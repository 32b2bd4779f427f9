"""
Timeline Player
===============

Replays a step script as a sequence of reveal events, waiting out each
phase delay through an injected sleep coroutine.
"""

import asyncio
from typing import AsyncIterator, Awaitable, Callable

from pydantic import BaseModel

from .script import ScriptItem, StepScript

Sleep = Callable[[float], Awaitable[None]]


class RevealEvent(BaseModel):
    """An item entering a phase."""
    step: int
    index: int
    phase: str
    item: ScriptItem


async def _wait(delay_ms: int, pace: float, sleep: Sleep) -> None:
    seconds = delay_ms * pace / 1000
    if seconds > 0:
        await sleep(seconds)


async def play_script(
    script: StepScript, pace: float = 1.0, sleep: Sleep = asyncio.sleep
) -> AsyncIterator[RevealEvent]:
    """
    Yield one event per phase transition, in script order.

    Args:
        script: Step to play
        pace: Multiplier applied to every delay; 0 plays instantly
        sleep: Coroutine used to wait, ``asyncio.sleep`` by default

    Yields:
        RevealEvent for each phase of each item
    """
    for index, item in enumerate(script.items):
        for phase in item.phases:
            await _wait(phase.delay_ms, pace, sleep)
            yield RevealEvent(step=script.index, index=index, phase=phase.name, item=item)
        await _wait(item.settle_ms, pace, sleep)
