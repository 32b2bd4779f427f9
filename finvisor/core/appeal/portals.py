"""
Portal Detection
================

Maps an aid portal URL onto a known automation template.
"""

import re
from typing import Any, Dict

from finvisor.core.providers.browserbase import generate_automation_code

_STEP_PATTERNS = [re.compile(p) for p in (r"await page\.", r"click\(", r"fill\(", r"navigate")]

SUBMISSION_NEXT_STEPS = [
    "Save your confirmation number for reference",
    "Expect a response within 2-4 weeks",
    "Check your email and portal for updates",
    "Consider sending a follow-up email in 7-10 days",
]


def detect_portal_type(portal_url: str) -> str:
    url = portal_url.lower()
    if "stanford.edu" in url:
        return "stanford"
    if "harvard.edu" in url:
        return "harvard"
    return "generic"


def count_steps(code: str) -> int:
    return sum(len(p.findall(code)) for p in _STEP_PATTERNS)


def dry_run_plan(portal_url: str) -> Dict[str, Any]:
    """Template code and estimated step count without opening a browser."""
    portal_type = detect_portal_type(portal_url)
    code = generate_automation_code(portal_type)
    return {
        "mode": "dry_run",
        "portalType": portal_type,
        "generatedCode": code,
        "estimatedSteps": count_steps(code),
    }
