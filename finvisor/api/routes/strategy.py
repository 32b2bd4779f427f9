"""
Strategy Routes
===============

Gap strategy reasoning with optional success prediction and extended
thinking.
"""

from fastapi import APIRouter, status

from finvisor.api.responses import fail, ok, provider_failure
from finvisor.config.settings import get_settings
from finvisor.core.appeal.strategy import (
    DEEP_ANALYSIS_PROMPT,
    deep_analysis_context,
    format_prediction,
    format_steps,
    prediction_features,
)
from finvisor.core.providers.anthropic_client import get_anthropic_client
from finvisor.core.providers.base import ProviderError
from finvisor.core.providers.modal import get_modal_client
from finvisor.models.schemas import StrategyRequest

router = APIRouter(prefix="/api/strategy", tags=["Strategy"])


@router.post("")
async def analyze(request: StrategyRequest):
    """Build the negotiation strategy for a student profile."""
    profile = request.student_profile
    if profile is None or not profile.school:
        return fail("Student profile with school is required", status.HTTP_400_BAD_REQUEST)

    settings = get_settings()
    anthropic = get_anthropic_client()

    try:
        strategy = await anthropic.analyze_gap_strategy(profile)

        prediction = None
        if request.options.include_prediction and settings.is_configured("modal"):
            prediction = await get_modal_client().predict_appeal_success(
                prediction_features(profile)
            )

        extended = None
        if request.options.include_extended_thinking:
            extended = await anthropic.deep_analysis(
                DEEP_ANALYSIS_PROMPT, deep_analysis_context(profile)
            )
    except ProviderError as e:
        return provider_failure(e, "Strategy")

    return ok(
        {
            "steps": format_steps(strategy["steps"]),
            "negotiationPlan": strategy["negotiationPlan"],
            "confidence": strategy["confidence"],
            "prediction": format_prediction(prediction) if prediction else None,
            "extendedAnalysis": extended,
        },
        metadata={"provider": "anthropic", "model": settings.anthropic_model},
    )
