"""
Unit Tests for the REST Providers
=================================

Perplexity, Browserbase, Fetch.ai, Modal and Decagon clients with the HTTP
layer replaced by AsyncMock.
"""

import json

import pytest
from unittest.mock import AsyncMock

from finvisor.core.providers.base import ProviderError, ProviderNotConfiguredError
from finvisor.core.providers.browserbase import (
    AutomationStep,
    BrowserbaseClient,
    build_submission_steps,
    extract_confirmation_number,
    generate_automation_code,
    generate_playwright_script,
)
from finvisor.core.providers.decagon import DecagonClient
from finvisor.core.providers.fetchai import (
    FetchAIClient,
    pricing_catalog,
    service_details,
)
from finvisor.core.providers.modal import UNHEALTHY_STATUS, ModalClient
from finvisor.core.providers.perplexity import PerplexityClient, normalize_citations
from finvisor.models.schemas import (
    AppealData,
    PolicyTopic,
    PortalCredentials,
    ServiceOffer,
    ServiceType,
    StudentProfile,
)

from tests.conftest import make_settings
from tests.utils.mocks import perplexity_answer


@pytest.mark.unit
class TestPerplexityClient:
    """Test research requests and answer shaping."""

    @pytest.fixture
    def client(self):
        client = PerplexityClient(make_settings(perplexity_api_key="pplx-test"))
        client._request = AsyncMock()
        return client

    def test_normalize_citations(self):
        raw = ["https://a.edu", {"url": "https://b.gov", "title": "FSA"}]
        assert normalize_citations(raw) == [
            {"url": "https://a.edu", "title": "Source 1", "snippet": ""},
            {"url": "https://b.gov", "title": "FSA", "snippet": ""},
        ]
        assert normalize_citations(None) == []

    @pytest.mark.asyncio
    async def test_research_query_academic_filter(self, client):
        client._request.return_value = perplexity_answer("Avg $59,400", ["https://stanford.edu"])

        result = await client.research_query("Stanford average aid")

        assert result["answer"] == "Avg $59,400"
        assert result["confidence"] == 0.9
        body = client._request.call_args.kwargs["json_body"]
        assert body["search_domain_filter"] == ["edu", "gov", "org"]
        assert body["max_tokens"] == 1000
        assert body["return_citations"] is True

    @pytest.mark.asyncio
    async def test_research_query_without_citations(self, client):
        client._request.return_value = perplexity_answer("Unsure")

        result = await client.research_query("anything", focus="general")

        assert result["confidence"] == 0.6
        assert "search_domain_filter" not in client._request.call_args.kwargs["json_body"]

    @pytest.mark.asyncio
    async def test_batch_research_isolates_failures(self, client):
        client._request.side_effect = [
            perplexity_answer("First", [{"url": "u", "title": "IPEDS"}]),
            ProviderError("boom", provider="perplexity"),
        ]

        results = await client.batch_research(["q1", "q2"])

        assert results[0] == {"query": "q1", "result": "First", "source": "IPEDS", "status": "found"}
        assert results[1] == {
            "query": "q2",
            "result": "Research failed - please try again",
            "source": "Error",
            "status": "error",
        }

    @pytest.mark.asyncio
    async def test_fact_check_parses_json(self, client):
        client._request.return_value = perplexity_answer(
            '{"verified": true, "explanation": "Yes", "sources": ["kff.org"]}'
        )

        result = await client.fact_check("COBRA averages $1,700")

        assert result == {"verified": True, "explanation": "Yes", "sources": ["kff.org"]}

    @pytest.mark.asyncio
    async def test_fact_check_fallback(self, client):
        client._request.return_value = perplexity_answer("Probably true", ["https://kff.org"])

        result = await client.fact_check("claim")

        assert result == {
            "verified": False,
            "explanation": "Probably true",
            "sources": ["https://kff.org"],
        }

    @pytest.mark.asyncio
    async def test_school_comparison_splits_target(self, client):
        schools = {
            "schools": [
                {"name": "Harvard", "avgAid": 59076, "acceptanceRate": 3, "costOfAttendance": 82000},
                {"name": "Stanford University", "avgAid": 59400, "acceptanceRate": 4},
            ]
        }
        client._request.return_value = perplexity_answer(json.dumps(schools))

        result = await client.get_school_comparison("Stanford", ["Harvard"])

        assert result["targetData"] == {
            "avgAid": 59400,
            "acceptanceRate": 4,
            "costOfAttendance": 80000,
        }
        assert [s["name"] for s in result["comparisons"]] == ["Harvard"]

    @pytest.mark.asyncio
    async def test_school_comparison_defaults(self, client):
        client._request.return_value = perplexity_answer("no data")

        result = await client.get_school_comparison("Stanford")

        assert result == {
            "targetData": {"avgAid": 50000, "acceptanceRate": 10, "costOfAttendance": 80000},
            "comparisons": [],
        }

    @pytest.mark.asyncio
    async def test_policy_research_fallback(self, client):
        client._request.return_value = perplexity_answer("Plain summary", ["https://stanford.edu/sar"])

        result = await client.research_aid_policy("Stanford", PolicyTopic.DEADLINES)

        assert result == {
            "policy": "Plain summary",
            "keyPoints": [],
            "officialSource": "https://stanford.edu/sar",
        }
        body = client._request.call_args.kwargs["json_body"]
        assert body["search_domain_filter"] == ["edu"]
        assert "financial aid deadlines" in body["messages"][1]["content"]


@pytest.mark.unit
class TestBrowserbaseHelpers:
    """Test automation script building."""

    def test_playwright_script(self):
        script = generate_playwright_script(
            [
                AutomationStep(action="navigate", url="https://portal.edu"),
                AutomationStep(action="type", selector="#user", value="sarah"),
                AutomationStep(action="wait"),
                AutomationStep(action="screenshot"),
            ]
        )
        lines = script.split("\n")
        assert lines[0] == "const { page } = context;"
        assert "await page.goto('https://portal.edu');" in lines
        assert "await page.fill('#user', 'sarah');" in lines
        assert "await page.waitForTimeout(1000);" in lines

    def test_submission_steps_include_form_fields(self):
        steps = build_submission_steps(
            "https://portal.edu",
            PortalCredentials(username="sarah", password="pw"),
            AppealData(letter_content="Dear Office", form_fields={"term": "Fall"}),
        )
        assert steps[0].url == "https://portal.edu"
        assert any(s.selector == '[name="term"], #term' and s.value == "Fall" for s in steps)
        assert steps[-1].action == "extract"
        assert any(s.value == "Dear Office" for s in steps)

    def test_confirmation_from_url(self):
        assert extract_confirmation_number({"finalUrl": "https://p.edu/confirmation/ABC123"}) == "ABC123"

    def test_confirmation_from_step_text(self):
        result = {"steps": [{"text": "Confirmation: SFA-2026-1"}]}
        assert extract_confirmation_number(result) == "SFA-2026-1"

    def test_confirmation_fallback(self):
        assert extract_confirmation_number({}).startswith("FIN-")

    def test_unknown_portal_uses_generic_template(self):
        assert generate_automation_code("yale") == generate_automation_code("generic")


@pytest.mark.unit
class TestBrowserbaseClient:
    """Test submission and status mapping."""

    @pytest.fixture
    def client(self):
        client = BrowserbaseClient(make_settings(browserbase_api_key="bb-test"))
        client._request = AsyncMock()
        return client

    @pytest.fixture
    def appeal(self):
        return (
            "https://financialaid.stanford.edu",
            PortalCredentials(username="sarah", password="pw"),
            AppealData(letter_content="Dear Office"),
        )

    @pytest.mark.asyncio
    async def test_submission_success(self, client, appeal):
        client._request.side_effect = [
            {"id": "sess-1"},
            {
                "success": True,
                "finalUrl": "https://p.edu/confirmation=XYZ9",
                "steps": [{"screenshot": "s1"}, {}, {"screenshot": "s2"}],
            },
        ]

        result = await client.submit_financial_aid_appeal(*appeal)

        assert result == {"success": True, "confirmationNumber": "XYZ9", "screenshots": ["s1", "s2"]}
        assert client._request.call_args_list[1].args[1] == "/sessions/sess-1/execute"

    @pytest.mark.asyncio
    async def test_submission_failure_is_reported(self, client, appeal):
        client._request.side_effect = ProviderError("bad gateway", provider="browserbase")

        result = await client.submit_financial_aid_appeal(*appeal)

        assert result == {"success": False, "screenshots": [], "error": "bad gateway"}

    @pytest.mark.asyncio
    async def test_scrape_logs_in_and_reports_summary_shape(self, client, appeal):
        portal_url, credentials, _ = appeal
        client._request.side_effect = [{"id": "sess-2"}, {"success": True, "steps": [{"text": "Aid"}]}]

        result = await client.scrape_portal_info(portal_url, credentials)

        assert result == {
            "aidPackage": {"grants": 0, "loans": 0, "workStudy": 0, "total": 0},
            "deadlines": [],
            "messages": [],
        }
        script = client._request.call_args_list[1].kwargs["json_body"]["script"]
        assert "https://financialaid.stanford.edu" in script
        assert "sarah" in script

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "state,expected",
        [("completed", "confirmed"), ("failed", "error"), ("running", "pending")],
    )
    async def test_status_mapping(self, client, state, expected):
        client._request.return_value = {"status": state}

        result = await client.check_submission_status("sess-1")

        assert result["status"] == expected


@pytest.mark.unit
class TestFetchAI:
    """Test payments and the service catalog."""

    @pytest.fixture
    def client(self):
        client = FetchAIClient(
            make_settings(fetchai_api_key="fa-test", fetchai_agent_address="agent1q")
        )
        client._request = AsyncMock()
        return client

    def test_service_details(self):
        assert service_details(ServiceType.PRO_APPEAL)["price"] == 29
        assert service_details(ServiceType.ADVISOR_SESSION)["name"] == "Basic Appeal Package"

    def test_pricing_catalog_ids(self):
        assert [s["id"] for s in pricing_catalog()] == [
            "basic_appeal",
            "pro_appeal",
            "premium_appeal",
        ]

    @pytest.mark.asyncio
    async def test_request_payment_uses_list_price(self, client):
        client._request.return_value = {"id": "pay-1"}

        await client.request_payment("user-1", ServiceType.PRO_APPEAL)

        body = client._request.call_args.kwargs["json_body"]
        assert body["amount"] == 29
        assert body["recipient"] == "agent1q"
        assert body["metadata"]["service_description"] == "Finvisor pro appeal service"

    @pytest.mark.asyncio
    async def test_request_payment_custom_amount(self, client):
        client._request.return_value = {"id": "pay-1"}

        await client.request_payment("user-1", ServiceType.BASIC_APPEAL, 12.5)

        assert client._request.call_args.kwargs["json_body"]["amount"] == 12.5

    @pytest.mark.asyncio
    async def test_confirm_payment(self, client):
        client._request.return_value = {"status": "completed", "transaction_hash": "0x1", "amount": 9}

        assert await client.confirm_payment("pay-1") == {
            "confirmed": True,
            "transaction_hash": "0x1",
            "amount": 9,
        }

    @pytest.mark.asyncio
    async def test_create_service_offer(self, client):
        client._request.return_value = {"id": "offer-7"}

        listing = await client.create_service_offer(ServiceOffer(name="Review", price=5))

        assert listing == {
            "offerId": "offer-7",
            "listingUrl": "https://agentverse.ai/services/offer-7",
        }
        assert client._request.call_args.kwargs["json_body"]["auto_accept"] is True


@pytest.mark.unit
class TestModalClient:
    """Test function invocation."""

    @pytest.fixture
    def client(self):
        client = ModalClient(make_settings(modal_token_id="tok", modal_token_secret="sec"))
        client._request = AsyncMock()
        return client

    def test_token_header(self, client):
        assert client._headers()["Authorization"] == "Token tok:sec"

    @pytest.mark.asyncio
    async def test_prediction_returns_result(self, client):
        client._request.return_value = {"status": "success", "result": {"success_probability": 0.7}}

        result = await client.predict_appeal_success({"gpa": 3.8})

        assert result == {"success_probability": 0.7}
        assert client._request.call_args.args[1] == "/functions/finvisor-appeal-predictor/invoke"

    @pytest.mark.asyncio
    async def test_failed_invocation_raises(self, client):
        client._request.return_value = {"status": "failed"}

        with pytest.raises(ProviderError):
            await client.enhance_appeal_letter("Dear", StudentProfile(name="Sarah"))

    @pytest.mark.asyncio
    async def test_status_falls_back_to_unhealthy(self, client):
        client._request.side_effect = ProviderError("down", provider="modal")

        assert await client.get_status() == UNHEALTHY_STATUS

    @pytest.mark.asyncio
    async def test_unconfigured_status_is_unhealthy(self):
        client = ModalClient(make_settings())

        assert (await client.get_status())["healthy"] is False


@pytest.mark.unit
class TestDecagonClient:
    """Test conversation relaying."""

    @pytest.fixture
    def client(self):
        client = DecagonClient(make_settings(decagon_api_key="dk", decagon_bot_id="bot-1"))
        client._request = AsyncMock()
        return client

    @pytest.mark.asyncio
    async def test_send_message_shapes_reply(self, client):
        client._request.return_value = {
            "message": {"content": "Hello"},
            "intent": "greeting",
            "suggested_actions": ["start"],
        }

        reply = await client.send_message("conv-1", "Hi")

        assert reply == {
            "response": {"content": "Hello"},
            "intent": "greeting",
            "suggestedActions": ["start"],
        }

    @pytest.mark.asyncio
    async def test_send_message_defaults(self, client):
        client._request.return_value = {}

        reply = await client.send_message("conv-1", "Hi")

        assert reply == {"response": {}, "intent": None, "suggestedActions": []}

    @pytest.mark.asyncio
    async def test_start_conversation_uses_bot(self, client):
        client._request.return_value = {"id": "conv-9"}

        await client.start_conversation("user-1")

        body = client._request.call_args.kwargs["json_body"]
        assert body["bot_id"] == "bot-1"
        assert body["settings"]["tone"] == "empathetic"

    @pytest.mark.asyncio
    async def test_analytics_params(self, client):
        client._request.return_value = {}

        await client.get_conversation_analytics({"start": "a", "end": "b"})

        assert client._request.call_args.kwargs["params"] == {"bot_id": "bot-1", "start": "a", "end": "b"}

    @pytest.mark.asyncio
    async def test_unconfigured_raises(self):
        client = DecagonClient(make_settings())

        with pytest.raises(ProviderNotConfiguredError):
            await client.get_conversation("conv-1")
