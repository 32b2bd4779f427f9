"""
Test Configuration
==================

Pytest configuration shared by unit and integration tests.
Every test runs against TestSettings with no provider credentials, instant
wizard playback and fresh provider clients.
"""

from typing import Any, Callable, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from pydantic_settings import SettingsConfigDict

import finvisor.config.settings as settings_module
from finvisor.config.settings import Settings
from finvisor.core.providers import (
    anthropic_client,
    browserbase,
    decagon,
    fetchai,
    modal,
    openai_client,
    perplexity,
    zoom,
)
from finvisor.core.wizard import controller

CREDENTIAL_FIELDS = [
    "openai_api_key",
    "anthropic_api_key",
    "perplexity_api_key",
    "browserbase_api_key",
    "browserbase_project_id",
    "fetchai_api_key",
    "fetchai_agent_address",
    "modal_token_id",
    "modal_token_secret",
    "decagon_api_key",
    "decagon_bot_id",
    "zoom_account_id",
    "zoom_client_id",
    "zoom_client_secret",
    "zoom_webhook_secret_token",
]

PROVIDER_GLOBALS = [
    (openai_client, "_openai_client"),
    (anthropic_client, "_anthropic_client"),
    (perplexity, "_perplexity_client"),
    (browserbase, "_browserbase_client"),
    (fetchai, "_fetchai_client"),
    (modal, "_modal_client"),
    (decagon, "_decagon_client"),
    (zoom, "_zoom_client"),
]


# Test settings override
class TestSettings(Settings):
    """Test-specific settings."""

    environment: str = "testing"
    debug: bool = True
    wizard_pace: float = 0.0
    stream_word_delay: float = 0.0
    log_level: str = "DEBUG"

    model_config = SettingsConfigDict(env_file=None)


def make_settings(**overrides: Any) -> TestSettings:
    """
    TestSettings with every credential unset unless overridden.

    Credentials are passed under their prefixed alias so they take
    precedence over vendor variables such as ``OPENAI_API_KEY`` that may be
    set in the environment.
    """
    values: Dict[str, Any] = {name: None for name in CREDENTIAL_FIELDS}
    values.update(overrides)
    kwargs = {
        f"FINVISOR_{name.upper()}" if name in CREDENTIAL_FIELDS else name: value
        for name, value in values.items()
    }
    return TestSettings(**kwargs)


@pytest.fixture
def test_settings() -> TestSettings:
    """Test settings fixture."""
    return make_settings()


@pytest.fixture(autouse=True)
def override_settings(monkeypatch, test_settings: TestSettings):
    """Install test settings as the global instance."""
    monkeypatch.setattr(settings_module, "settings", test_settings)
    yield test_settings


@pytest.fixture(autouse=True)
def reset_globals(monkeypatch):
    """Fresh provider clients and wizard store for each test."""
    for module, name in PROVIDER_GLOBALS:
        monkeypatch.setattr(module, name, None)
    monkeypatch.setattr(controller, "_wizard_store", None)
    yield


@pytest.fixture
def configure(monkeypatch) -> Callable[..., TestSettings]:
    """Replace the global settings, e.g. ``configure(openai_api_key="sk-test")``."""

    def _configure(**overrides: Any) -> TestSettings:
        current = make_settings(**overrides)
        monkeypatch.setattr(settings_module, "settings", current)
        return current

    return _configure


@pytest.fixture
def install_client(monkeypatch) -> Callable[[Any, str, Any], Any]:
    """Make a provider getter return ``client``."""

    def _install(module: Any, name: str, client: Any) -> Any:
        monkeypatch.setattr(module, name, client)
        return client

    return _install


@pytest.fixture
def mock_openai(install_client) -> MagicMock:
    client = MagicMock()
    client.generate_chat_response = AsyncMock(
        return_value={"content": "Which school are you attending?", "usage": {"tokens": 42}}
    )
    client.parse_document_with_vision = AsyncMock(return_value={"fields": [], "rawText": ""})
    client.extract_structured_data = AsyncMock(return_value={})
    return install_client(openai_client, "_openai_client", client)


@pytest.fixture
def mock_anthropic(install_client) -> MagicMock:
    client = MagicMock()
    client.analyze_gap_strategy = AsyncMock(
        return_value={
            "steps": [
                {"label": "Income", "result": "34% drop", "status": "positive"},
                {"label": "Competing offers", "result": "None", "status": "skip"},
            ],
            "negotiationPlan": ["Lead with income documentation"],
            "confidence": 0.82,
        }
    )
    client.generate_appeal_letter = AsyncMock(
        return_value={
            "letter": "Dear Office,\n1. Income dropped\nSincerely,\nSarah",
            "metadata": {"wordCount": 7, "citationsUsed": 1, "tone": "Professional & empathetic"},
        }
    )
    client.deep_analysis = AsyncMock(return_value={"analysis": "Lead with COBRA", "thinking": "..."})
    client.advisor_response = AsyncMock(
        return_value={"suggestion": "Send a follow-up", "insight": "Nervous", "actionItems": []}
    )
    return install_client(anthropic_client, "_anthropic_client", client)


@pytest.fixture
def mock_perplexity(install_client) -> MagicMock:
    client = MagicMock()
    client.research_query = AsyncMock(
        return_value={"answer": "About $59,400", "citations": [], "confidence": 0.6}
    )
    client.batch_research = AsyncMock(
        return_value=[{"query": "q", "result": "r", "source": "s", "status": "found"}]
    )
    client.research_aid_policy = AsyncMock(
        return_value={"policy": "SAR review", "keyPoints": ["Apply early"], "officialSource": None}
    )
    client.get_school_comparison = AsyncMock(
        return_value={"targetData": {"avgAid": 59400}, "comparisons": []}
    )
    client.fact_check = AsyncMock(
        return_value={"verified": True, "explanation": "Correct", "sources": []}
    )
    return install_client(perplexity, "_perplexity_client", client)


@pytest.fixture
def mock_modal(install_client) -> MagicMock:
    client = MagicMock()
    client.parse_documents_batch = AsyncMock(return_value=[{"id": "doc-1", "fields": []}])
    client.predict_appeal_success = AsyncMock(
        return_value={
            "success_probability": 0.74,
            "confidence_interval": [0.6, 0.85],
            "key_factors": ["income_change_percent"],
        }
    )
    client.enhance_appeal_letter = AsyncMock(
        return_value={
            "enhanced_letter": "Dear Office, enhanced.",
            "improvements": ["Tighter opening"],
            "tone_score": 0.9,
            "persuasion_score": 0.8,
        }
    )
    client.get_status = AsyncMock(
        return_value={"healthy": True, "active_functions": 3, "gpu_utilization": 40, "queue_depth": 1}
    )
    return install_client(modal, "_modal_client", client)


@pytest.fixture
def mock_fetchai(install_client) -> MagicMock:
    client = MagicMock()
    client.request_payment = AsyncMock(
        return_value={"id": "pay-1", "amount": 29, "currency": "USD", "status": "pending"}
    )
    client.confirm_payment = AsyncMock(
        return_value={"confirmed": True, "transaction_hash": "0xabc", "amount": 29}
    )
    client.create_service_offer = AsyncMock(
        return_value={"offerId": "offer-1", "listingUrl": "https://agentverse.ai/services/offer-1"}
    )
    client.get_agent_analytics = AsyncMock(
        return_value={
            "totalRevenue": 1200,
            "completedServices": 41,
            "activeRequests": 2,
            "averageRating": 4.8,
            "recentTransactions": [],
        }
    )
    return install_client(fetchai, "_fetchai_client", client)


@pytest.fixture
def mock_decagon(install_client) -> MagicMock:
    client = MagicMock()
    client.start_conversation = AsyncMock(return_value={"id": "conv-1"})
    client.send_message = AsyncMock(
        return_value={
            "response": {"content": "Tell me about your school."},
            "intent": "intake",
            "suggestedActions": ["upload_documents"],
        }
    )
    client.get_conversation = AsyncMock(
        return_value={"id": "conv-1", "messages": [{"role": "user", "content": "Hi"}]}
    )
    client.get_conversation_analytics = AsyncMock(
        return_value={
            "totalConversations": 310,
            "resolvedCount": 280,
            "escalatedCount": 12,
            "averageResolutionTime": 240,
            "satisfactionScore": 4.6,
            "topIntents": ["appeal_help"],
        }
    )
    return install_client(decagon, "_decagon_client", client)


@pytest.fixture
def mock_browserbase(install_client) -> MagicMock:
    client = MagicMock()
    client.submit_financial_aid_appeal = AsyncMock(
        return_value={"success": True, "confirmationNumber": "SFA-1", "screenshots": ["shot-1"]}
    )
    client.check_submission_status = AsyncMock(
        return_value={"status": "pending", "message": "Submission in progress"}
    )
    client.scrape_portal_info = AsyncMock(
        return_value={"aidPackage": {"grants": 0, "loans": 0, "workStudy": 0, "total": 0},
                      "deadlines": [], "messages": []}
    )
    return install_client(browserbase, "_browserbase_client", client)


@pytest.fixture
def mock_zoom(install_client) -> MagicMock:
    client = MagicMock()
    client.get_meeting = AsyncMock(return_value={"id": 777, "topic": "Appeal review"})
    client.get_transcript = AsyncMock(
        return_value=[
            {"speaker_name": "Advisor", "text": "Let's review the appeal.", "start_time": 0.0, "end_time": 2.5},
            {"speaker_name": "Sarah", "text": "My mother lost her job.", "start_time": 2.5, "end_time": 5.0},
        ]
    )
    return install_client(zoom, "_zoom_client", client)


@pytest.fixture
def app():
    """FastAPI application."""
    from finvisor.api.main import create_app

    return create_app()


@pytest.fixture
def client(app) -> TestClient:
    """Test client that renders unhandled errors as 500 responses."""
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def student_profile() -> Dict[str, Any]:
    """Profile of the demo student."""
    return {
        "name": "Sarah Chen",
        "school": "Stanford University",
        "currentAid": 45000,
        "totalCost": 62000,
        "gap": 17000,
        "gpa": 3.8,
        "circumstances": [
            {"type": "job_loss", "description": "Mother lost her job in October", "impact": 33350},
            {"type": "medical", "description": "COBRA premiums", "impact": 21600},
        ],
        "documents": [{"type": "w2", "summary": "2025 W-2"}],
    }
