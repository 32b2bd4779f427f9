"""
Research Routes
===============

Cited research through Perplexity: batches of queries, school policy,
peer comparisons and fact checks.
"""

from typing import List, Optional

from fastapi import APIRouter, status

from finvisor.api.responses import fail, ok, provider_failure
from finvisor.config.settings import get_settings
from finvisor.core.providers.base import ProviderError
from finvisor.core.providers.perplexity import get_perplexity_client
from finvisor.models.schemas import ResearchRequest, ResearchType

router = APIRouter(prefix="/api/research", tags=["Research"])

DEFAULT_COMPARISONS = ["Harvard", "Yale", "Princeton"]


def default_queries(school: str) -> List[str]:
    return [
        f"{school} average financial aid package 2025",
        "Financial aid appeal success rate top universities",
        f"{school} financial aid appeal policy",
        "COBRA insurance average cost 2025",
        "Peer institution financial aid comparison Ivy+ schools",
    ]


@router.post("")
async def research(request: ResearchRequest):
    """Run the requested kind of research."""
    if request.type == ResearchType.POLICY and not (request.school and request.topic):
        return fail("School and topic required for policy research", status.HTTP_400_BAD_REQUEST)
    if request.type == ResearchType.COMPARISON and not request.school:
        return fail("School required for comparison", status.HTTP_400_BAD_REQUEST)
    if request.type == ResearchType.FACT_CHECK and not request.claim:
        return fail("Claim required for fact checking", status.HTTP_400_BAD_REQUEST)
    if request.type == ResearchType.GENERAL and not (request.queries or request.school):
        return fail("Queries or school required", status.HTTP_400_BAD_REQUEST)

    perplexity = get_perplexity_client()
    try:
        if request.type == ResearchType.POLICY:
            policy = await perplexity.research_aid_policy(request.school, request.topic)
            results = {"type": "policy", "school": request.school, "topic": request.topic, **policy}
        elif request.type == ResearchType.COMPARISON:
            comparison = await perplexity.get_school_comparison(
                request.school, request.comparisons or DEFAULT_COMPARISONS
            )
            results = {"type": "comparison", "targetSchool": request.school, **comparison}
        elif request.type == ResearchType.FACT_CHECK:
            verdict = await perplexity.fact_check(request.claim)
            results = {"type": "fact_check", "claim": request.claim, **verdict}
        else:
            results = await perplexity.batch_research(
                request.queries or default_queries(request.school)
            )
    except ProviderError as e:
        return provider_failure(e, "Research")

    return ok(results, metadata={"provider": "perplexity", "model": get_settings().perplexity_model})


@router.get("")
async def quick_research(query: Optional[str] = None, focus: str = "academic"):
    """Single research query."""
    if not query:
        return fail("Query parameter required", status.HTTP_400_BAD_REQUEST)

    try:
        result = await get_perplexity_client().research_query(query, focus)
    except ProviderError as e:
        return provider_failure(e, "Research query", "Research query failed")

    return ok({"query": query, **result}, metadata={"provider": "perplexity", "focus": focus})
