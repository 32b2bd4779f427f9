"""
Appeal Routes
=============

Appeal letter generation, optional Modal enhancement and a word-by-word
streaming variant.
"""

import asyncio

from fastapi import APIRouter, status
from fastapi.responses import StreamingResponse

from finvisor.api.responses import fail, ok, provider_failure
from finvisor.config.logging import get_logger
from finvisor.config.settings import get_settings
from finvisor.core.appeal.letters import stream_words, to_markdown
from finvisor.core.providers.anthropic_client import get_anthropic_client
from finvisor.core.providers.base import ProviderError
from finvisor.core.providers.modal import get_modal_client
from finvisor.models.schemas import AppealRequest

logger = get_logger(__name__)

router = APIRouter(prefix="/api/appeal", tags=["Appeal"])

PROFILE_REQUIRED = "Student profile with name and school required"


def _has_profile(request: AppealRequest) -> bool:
    profile = request.student_profile
    return profile is not None and bool(profile.name) and bool(profile.school)


@router.post("")
async def generate(request: AppealRequest):
    """Write the appeal letter."""
    if not _has_profile(request):
        return fail(PROFILE_REQUIRED, status.HTTP_400_BAD_REQUEST)

    try:
        result = await get_anthropic_client().generate_appeal_letter(
            request.student_profile, request.research_data, request.strategy
        )
    except ProviderError as e:
        return provider_failure(e, "Appeal generation")

    letter = result["letter"]
    enhancement = None

    if request.options.enhance and get_settings().is_configured("modal"):
        try:
            enhanced = await get_modal_client().enhance_appeal_letter(
                letter, request.student_profile
            )
            letter = enhanced["enhanced_letter"]
            enhancement = {
                "improvements": enhanced.get("improvements") or [],
                "toneScore": enhanced.get("tone_score"),
                "persuasionScore": enhanced.get("persuasion_score"),
            }
        except (ProviderError, KeyError) as e:
            logger.error("Enhancement failed, keeping original letter", error=str(e))

    if request.options.format == "markdown":
        letter = to_markdown(letter)

    metadata = result["metadata"]
    return ok(
        {
            "letter": letter,
            "metadata": {
                "wordCount": metadata["wordCount"],
                "citationsCount": metadata["citationsUsed"],
                "tone": metadata["tone"],
                "generatedBy": "anthropic",
            },
            "enhancement": enhancement,
        }
    )


@router.put("")
async def generate_streaming(request: AppealRequest):
    """Write the appeal letter and stream it word by word as plain text."""
    if not _has_profile(request):
        return fail(PROFILE_REQUIRED, status.HTTP_400_BAD_REQUEST)

    try:
        result = await get_anthropic_client().generate_appeal_letter(
            request.student_profile, request.research_data, request.strategy
        )
    except ProviderError as e:
        return provider_failure(e, "Appeal streaming", "Streaming failed")

    return StreamingResponse(
        stream_words(result["letter"], get_settings().stream_word_delay, asyncio.sleep),
        media_type="text/plain; charset=utf-8",
    )
