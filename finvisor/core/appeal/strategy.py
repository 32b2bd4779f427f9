"""
Strategy Helpers
================

Feature building for the appeal success predictor and formatting of the
reasoning steps returned by the strategist model.
"""

import re
from typing import Any, Dict, List

from finvisor.models.schemas import StudentProfile

DEFAULT_GPA = 3.5
DEFAULT_TIER = 4

DEEP_ANALYSIS_PROMPT = "What are the most effective negotiation strategies for this specific case?"

# Checked in order; the first key contained in the normalised school name wins
SCHOOL_TIERS: Dict[str, int] = {
    # Ivy+
    "harvard": 1,
    "yale": 1,
    "princeton": 1,
    "stanford": 1,
    "mit": 1,
    "columbia": 1,
    "penn": 1,
    "duke": 1,
    "caltech": 1,
    # Top 20
    "northwestern": 2,
    "uchicago": 2,
    "johns_hopkins": 2,
    "dartmouth": 2,
    "brown": 2,
    "cornell": 2,
    "vanderbilt": 2,
    "rice": 2,
    "notre_dame": 2,
    # Top 50
    "emory": 3,
    "georgetown": 3,
    "carnegie_mellon": 3,
    "usc": 3,
    "ucla": 3,
    "berkeley": 3,
}

STEP_STYLES = {
    "positive": ("done", "#34d399"),
    "skip": ("skipped", "rgba(255,255,255,0.45)"),
}
DEFAULT_STEP_STYLE = ("done", "#fbbf24")


def school_tier(school: str) -> int:
    normalized = re.sub(r"[^a-z]", "_", school.lower())
    for key, tier in SCHOOL_TIERS.items():
        if key in normalized:
            return tier
    return DEFAULT_TIER


def prediction_features(profile: StudentProfile) -> Dict[str, Any]:
    """Feature vector for the appeal predictor."""
    kinds = {c.type for c in profile.circumstances}
    income_change = next(
        (c for c in profile.circumstances if c.type in ("job_loss", "income_change")), None
    )

    income_change_percent = 0.0
    if income_change and income_change.impact and profile.current_aid:
        income_change_percent = income_change.impact / profile.current_aid * 100

    return {
        "school_tier": school_tier(profile.school or ""),
        "current_aid": profile.current_aid,
        "gap_amount": profile.gap,
        "income_change_percent": income_change_percent,
        "has_medical_hardship": "medical" in kinds,
        "has_job_loss": "job_loss" in kinds,
        "has_competing_offers": "competing_offer" in kinds,
        "gpa": profile.gpa or DEFAULT_GPA,
        "document_count": len(profile.documents),
    }


def deep_analysis_context(profile: StudentProfile) -> str:
    circumstances = "; ".join(c.description for c in profile.circumstances)
    return (
        f"Student applying to {profile.school} with a ${profile.gap:g} gap. \n"
        f"Circumstances: {circumstances}"
    )


def format_steps(steps: List[Any]) -> List[Dict[str, Any]]:
    """Model steps as display rows; a bare string is taken as the label."""
    formatted = []
    for index, step in enumerate(steps):
        if isinstance(step, str):
            step = {"label": step}
        elif not isinstance(step, dict):
            continue
        status, color = STEP_STYLES.get(step.get("status"), DEFAULT_STEP_STYLE)
        formatted.append(
            {
                "id": f"step-{index}",
                "label": step.get("label", ""),
                "result": step.get("result", ""),
                "status": status,
                "color": color,
            }
        )
    return formatted


def format_prediction(prediction: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "successProbability": prediction.get("success_probability"),
        "confidenceInterval": prediction.get("confidence_interval"),
        "keyFactors": prediction.get("key_factors"),
    }
