"""
Perplexity Provider
===================

Cited web research for aid statistics, school policies, peer comparisons
and fact checks.
"""

import asyncio
from typing import Any, Dict, List, Optional

from finvisor.models.schemas import PolicyTopic
from .base import ProviderClient, ProviderError, extract_json

RESEARCH_SYSTEM_PROMPT = """You are a research assistant specializing in higher education finance and financial aid.
Provide accurate, well-sourced information with specific data points when available.
Focus on: financial aid statistics, university policies, appeal success rates, and comparable data.
Always cite your sources."""

TOPIC_DESCRIPTIONS = {
    PolicyTopic.APPEAL_PROCESS: "financial aid appeal process and procedures",
    PolicyTopic.SPECIAL_CIRCUMSTANCES: "special circumstances review and SAR policy",
    PolicyTopic.DEADLINES: "financial aid deadlines and important dates",
    PolicyTopic.REQUIREMENTS: "financial aid requirements and eligibility criteria",
}

ACADEMIC_DOMAINS = ["edu", "gov", "org"]

DEFAULT_SCHOOL_DATA = {"avgAid": 50000, "acceptanceRate": 10, "costOfAttendance": 80000}


def normalize_citations(raw: Optional[List[Any]]) -> List[Dict[str, str]]:
    """Turn URL strings or ``{url, title}`` objects into ``{url, title, snippet}``."""
    citations = []
    for i, item in enumerate(raw or []):
        if isinstance(item, str):
            url, title = item, None
        else:
            url, title = item.get("url", ""), item.get("title")
        citations.append({"url": url, "title": title or f"Source {i + 1}", "snippet": ""})
    return citations


class PerplexityClient(ProviderClient):
    """Client for the Perplexity chat completions API."""

    provider_name = "perplexity"

    def _base_url(self) -> str:
        return self.settings.perplexity_api_url

    def missing_credentials(self) -> List[str]:
        return [] if self.settings.perplexity_api_key else ["PERPLEXITY_API_KEY"]

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.perplexity_api_key}",
            "Content-Type": "application/json",
        }

    async def _chat(
        self,
        system: str,
        user: str,
        temperature: float,
        max_tokens: Optional[int] = None,
        domain_filter: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.settings.perplexity_model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "temperature": temperature,
            "return_citations": True,
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens
        if domain_filter:
            payload["search_domain_filter"] = domain_filter

        return await self._request("POST", "", json_body=payload)

    @staticmethod
    def _content(response: Dict[str, Any]) -> str:
        choices = response.get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content") or ""

    async def research_query(self, query: str, focus: str = "academic") -> Dict[str, Any]:
        """
        Answer a single research question with citations.

        Args:
            query: Natural-language question
            focus: ``academic`` restricts sources to edu/gov/org domains

        Returns:
            ``{"answer": str, "citations": [...], "confidence": float}``
        """
        response = await self._chat(
            RESEARCH_SYSTEM_PROMPT,
            query,
            temperature=0.2,
            max_tokens=1000,
            domain_filter=ACADEMIC_DOMAINS if focus == "academic" else None,
        )
        citations = normalize_citations(response.get("citations"))

        return {
            "answer": self._content(response),
            "citations": citations,
            "confidence": 0.9 if citations else 0.6,
        }

    async def _research_one(self, query: str) -> Dict[str, Any]:
        try:
            research = await self.research_query(query)
        except ProviderError as e:
            self.logger.error("Research query failed", query=query, error=str(e))
            return {
                "query": query,
                "result": "Research failed - please try again",
                "source": "Error",
                "status": "error",
            }

        citations = research["citations"]
        return {
            "query": query,
            "result": research["answer"],
            "source": citations[0]["title"] if citations else "Perplexity Research",
            "status": "found",
        }

    async def batch_research(self, queries: List[str]) -> List[Dict[str, Any]]:
        """Run queries concurrently; a failing query yields ``status: error``."""
        return list(await asyncio.gather(*(self._research_one(q) for q in queries)))

    async def fact_check(self, claim: str) -> Dict[str, Any]:
        """Verify a claim. Returns ``{verified, explanation, sources}``."""
        response = await self._chat(
            "You are a fact-checker. Verify claims with current data. Return JSON with: "
            "verified (boolean), explanation (string), sources (array of strings).",
            f'Verify this claim: "{claim}"',
            temperature=0.1,
        )
        content = self._content(response)

        parsed = extract_json(content)
        if parsed is not None:
            return parsed

        return {
            "verified": False,
            "explanation": content,
            "sources": [c["url"] for c in normalize_citations(response.get("citations"))],
        }

    async def get_school_comparison(
        self, target_school: str, comparisons: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        """Average aid, acceptance rate and cost for a school and its peers."""
        schools = ", ".join([target_school, *(comparisons or [])])
        response = await self._chat(
            "You are a college financial data analyst. Provide accurate financial aid statistics.\n"
            "Return JSON with school financial data including average need-based aid, "
            "acceptance rate, and cost of attendance.",
            f"Get the latest financial aid statistics for these schools: {schools}.\n"
            "Include average need-based grant, acceptance rate, and total cost of attendance.\n"
            'Return as JSON with "schools" array containing objects with: name, avgAid (number), '
            "acceptanceRate (number 0-100), costOfAttendance (number).",
            temperature=0.2,
        )

        parsed = extract_json(self._content(response))
        if parsed is None:
            return {"targetData": dict(DEFAULT_SCHOOL_DATA), "comparisons": []}

        rows = [s for s in parsed.get("schools") or [] if isinstance(s, dict)]
        needle = target_school.lower()

        def is_target(row: Dict[str, Any]) -> bool:
            return needle in str(row.get("name", "")).lower()

        target = next((s for s in rows if is_target(s)), rows[0] if rows else {})
        return {
            "targetData": {
                key: target.get(key) or default for key, default in DEFAULT_SCHOOL_DATA.items()
            },
            "comparisons": [s for s in rows if not is_target(s)],
        }

    async def research_aid_policy(self, school: str, topic: PolicyTopic) -> Dict[str, Any]:
        """Summarise a school's policy on ``topic``."""
        response = await self._chat(
            "Research university financial aid policies. Provide specific, actionable information.",
            f"Research {school}'s {TOPIC_DESCRIPTIONS[topic]}.\n"
            "What are the specific requirements, procedures, and any tips for students?\n"
            "Return JSON with: policy (summary), keyPoints (array of strings), "
            "officialSource (url if available).",
            temperature=0.2,
            domain_filter=["edu"],
        )
        content = self._content(response)
        citations = normalize_citations(response.get("citations"))
        first_url = citations[0]["url"] if citations else None

        parsed = extract_json(content)
        if parsed is None:
            return {"policy": content, "keyPoints": [], "officialSource": first_url}

        return {
            "policy": parsed.get("policy") or content,
            "keyPoints": parsed.get("keyPoints") or [],
            "lastUpdated": parsed.get("lastUpdated"),
            "officialSource": parsed.get("officialSource") or first_url,
        }


# Global client instance
_perplexity_client: Optional[PerplexityClient] = None


def get_perplexity_client() -> PerplexityClient:
    """Get or create the global Perplexity client."""
    global _perplexity_client
    if _perplexity_client is None:
        _perplexity_client = PerplexityClient()
    return _perplexity_client


async def close_perplexity_client() -> None:
    """Close the global Perplexity client."""
    global _perplexity_client
    if _perplexity_client:
        await _perplexity_client.close()
        _perplexity_client = None
