"""
Anthropic Provider
==================

Gap strategy reasoning, appeal letter generation, extended-thinking analysis
and live advisor support through the async Anthropic SDK.
"""

import copy
from typing import Any, Dict, List, Optional

from anthropic import AsyncAnthropic, AnthropicError

from finvisor.config.logging import get_logger
from finvisor.config.settings import Settings, get_settings
from finvisor.models.schemas import ResearchItem, StudentProfile, TranscriptEntry
from .base import ProviderError, ProviderNotConfiguredError, extract_json

logger = get_logger(__name__)

STRATEGY_SYSTEM_PROMPT = """You are an expert financial aid strategist. Analyze the student's situation
and develop a comprehensive gap strategy. Think step by step through each potential angle:
1. Income changes/documentation
2. Medical expenses
3. Competing offers
4. Merit/academic leverage
5. Dependency status
6. Housing hardship
7. Family circumstances

For each, determine if it's a viable appeal vector. Be specific and actionable.
Return a JSON object with:
- steps: array of {label, result, status} where status is 'positive', 'neutral', or 'skip'
- negotiationPlan: array of prioritized strategies
- confidence: 0-1 score for appeal success likelihood"""

LETTER_SYSTEM_PROMPT = """You are an expert at writing compelling, professional financial aid appeal letters.
Write letters that are:
- Empathetic but not overly emotional
- Data-driven with specific numbers and citations
- Professional in tone
- Structured clearly (intro, circumstances, data support, request, closing)
- Persuasive without being demanding

Include relevant citations from the research data provided.
Do not use placeholders - write a complete, ready-to-send letter."""

ADVISOR_SYSTEM_PROMPT = """You are an AI assistant helping a human financial aid advisor during a live session.
Provide real-time suggestions, insights, and action items based on the conversation.
Be concise but helpful. Focus on practical next steps for the student."""

FALLBACK_STRATEGY: Dict[str, Any] = {
    "steps": [{"label": "Income analysis", "result": "Analysis complete", "status": "positive"}],
    "negotiationPlan": ["Document income changes", "Present hardship case"],
    "confidence": 0.7,
}

LETTER_TONE = "Professional & empathetic"
THINKING_BUDGET = 10000
ADVISOR_WINDOW = 10


def _money(value: float) -> str:
    return f"${value:,.0f}"


def _circumstance_lines(profile: StudentProfile, impact_label: str) -> str:
    lines = []
    for c in profile.circumstances:
        suffix = f" ({impact_label}: ${c.impact:g})" if c.impact else ""
        lines.append(f"- {c.type}: {c.description}{suffix}")
    return "\n".join(lines)


def count_citations(letter: str, research: List[ResearchItem]) -> int:
    """Count research sources whose first word appears in the letter."""
    lowered = letter.lower()
    return sum(1 for r in research if r.source.lower().split(" ")[0] in lowered)


class AnthropicClient:
    """Wrapper around ``AsyncAnthropic`` with lazy credential checks."""

    provider_name = "anthropic"

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.logger: Any = logger.bind(component="anthropic_client")
        self._client: Optional[AsyncAnthropic] = None

    def _get_client(self) -> AsyncAnthropic:
        if self._client is None:
            if not self.settings.anthropic_api_key:
                raise ProviderNotConfiguredError(self.provider_name, "ANTHROPIC_API_KEY")
            self._client = AsyncAnthropic(
                api_key=self.settings.anthropic_api_key, timeout=self.settings.provider_timeout
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def _create(self, **params: Any) -> Any:
        try:
            return await self._get_client().messages.create(
                model=self.settings.anthropic_model, **params
            )
        except AnthropicError as e:
            self.logger.error("Anthropic request failed", error=str(e))
            raise ProviderError(
                f"Anthropic API error: {e}",
                provider=self.provider_name,
                status_code=getattr(e, "status_code", None),
            ) from e

    @staticmethod
    def _text_of(response: Any) -> str:
        for block in response.content:
            if getattr(block, "type", None) == "text":
                return block.text
        return ""

    async def analyze_gap_strategy(self, profile: StudentProfile) -> Dict[str, Any]:
        """
        Reason through every appeal vector for the student.

        Args:
            profile: Student profile with school, numbers, circumstances and documents

        Returns:
            ``{"steps": [...], "negotiationPlan": [...], "confidence": float}``.
            A canned single-step strategy is returned when the model answer has
            no parseable JSON.
        """
        documents = "\n".join(f"- {d.type}: {d.summary}" for d in profile.documents)
        prompt = (
            "Analyze this student's financial aid situation and create a strategy:\n\n"
            f"School: {profile.school}\n"
            f"Current Aid: {_money(profile.current_aid)}\n"
            f"Total Cost: {_money(profile.total_cost)}\n"
            f"Gap: {_money(profile.gap)}\n\n"
            f"Circumstances:\n{_circumstance_lines(profile, 'Impact')}\n\n"
            f"Documents Available:\n{documents}\n\n"
            "Provide detailed step-by-step analysis and negotiation recommendations."
        )

        response = await self._create(
            max_tokens=2000,
            system=STRATEGY_SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )

        result = extract_json(self._text_of(response))
        if result is None:
            self.logger.warning("Strategy response had no JSON, using fallback")
            return copy.deepcopy(FALLBACK_STRATEGY)

        steps = result.get("steps")
        plan = result.get("negotiationPlan")
        return {
            "steps": steps if isinstance(steps, list) else [],
            "negotiationPlan": [str(p) for p in plan] if isinstance(plan, list) else [],
            "confidence": result.get("confidence", FALLBACK_STRATEGY["confidence"]),
        }

    async def generate_appeal_letter(
        self,
        profile: StudentProfile,
        research: List[ResearchItem],
        strategy: List[str],
    ) -> Dict[str, Any]:
        """Write a complete appeal letter. Returns ``{letter, metadata}``."""
        research_lines = "\n".join(f'- "{r.result}" (Source: {r.source})' for r in research)
        strategy_lines = "\n".join(f"{i + 1}. {s}" for i, s in enumerate(strategy))
        gpa_line = f"GPA: {profile.gpa}" if profile.gpa else ""

        prompt = (
            "Write a financial aid appeal letter with these details:\n\n"
            f"Student: {profile.name}\n"
            f"School: {profile.school}\n"
            f"Current Aid: {_money(profile.current_aid)}\n"
            f"Total Cost: {_money(profile.total_cost)}\n"
            f"Gap: {_money(profile.gap)}\n"
            f"{gpa_line}\n\n"
            f"Circumstances:\n{_circumstance_lines(profile, 'Financial Impact')}\n\n"
            f"Research Data to Cite:\n{research_lines}\n\n"
            f"Key Strategy Points:\n{strategy_lines}\n\n"
            "Write the complete letter now."
        )

        response = await self._create(
            max_tokens=3000,
            system=LETTER_SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        letter = self._text_of(response)

        return {
            "letter": letter,
            "metadata": {
                "wordCount": len(letter.split()),
                "citationsUsed": count_citations(letter, research),
                "tone": LETTER_TONE,
            },
        }

    async def deep_analysis(self, prompt: str, context: str) -> Dict[str, str]:
        """Run an extended-thinking analysis. Returns ``{analysis, thinking}``."""
        response = await self._create(
            max_tokens=16000,
            thinking={"type": "enabled", "budget_tokens": THINKING_BUDGET},
            messages=[{"role": "user", "content": f"Context: {context}\n\nAnalyze: {prompt}"}],
        )

        analysis = ""
        thinking = ""
        for block in response.content:
            block_type = getattr(block, "type", None)
            if block_type == "thinking":
                thinking = block.thinking
            elif block_type == "text":
                analysis = block.text

        return {"analysis": analysis, "thinking": thinking}

    async def advisor_response(
        self, transcript: List[TranscriptEntry], student_context: str
    ) -> Dict[str, Any]:
        """Suggest next moves to a human advisor from the latest transcript."""
        recent = "\n".join(f"{t.speaker}: {t.text}" for t in transcript[-ADVISOR_WINDOW:])
        prompt = (
            f"Student Context:\n{student_context}\n\n"
            f"Recent Conversation:\n{recent}\n\n"
            "Provide a suggestion for the advisor, an insight for the student record, "
            "and any action items.\n"
            "Return as JSON with keys: suggestion, insight, actionItems (array)"
        )

        response = await self._create(
            max_tokens=1000,
            system=ADVISOR_SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        text = self._text_of(response)

        result = extract_json(text)
        if result is None:
            return {"suggestion": text, "insight": "", "actionItems": []}
        return result


# Global client instance
_anthropic_client: Optional[AnthropicClient] = None


def get_anthropic_client() -> AnthropicClient:
    """Get or create the global Anthropic client."""
    global _anthropic_client
    if _anthropic_client is None:
        _anthropic_client = AnthropicClient()
    return _anthropic_client


async def close_anthropic_client() -> None:
    """Close the global Anthropic client."""
    global _anthropic_client
    if _anthropic_client:
        await _anthropic_client.close()
        _anthropic_client = None
