"""
Step Scripts
============

Data model for a scripted wizard step. Every item passes through one or
more named phases (``typing`` then ``revealed``, ``thinking`` then ``done``,
and so on); each phase carries the delay that precedes it.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class Phase(BaseModel):
    """Named state an item enters after ``delay_ms``."""
    name: str
    delay_ms: int = Field(default=0, ge=0)


class ScriptItem(BaseModel):
    """One revealable element of a step."""
    kind: str = Field(..., description="message, document, reasoning, query, line, action, ...")
    text: str = ""
    result: Optional[str] = None
    speaker: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    phases: List[Phase] = Field(default_factory=lambda: [Phase(name="revealed")])
    settle_ms: int = Field(default=0, ge=0, description="Pause after the last phase")


class StepScript(BaseModel):
    """Ordered items of one wizard step."""
    index: int
    label: str
    items: List[ScriptItem] = Field(default_factory=list)

    def total_delay_ms(self) -> int:
        """Unpaced playing time of the whole step."""
        return sum(sum(p.delay_ms for p in item.phases) + item.settle_ms for item in self.items)
