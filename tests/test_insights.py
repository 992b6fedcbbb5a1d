"""Tests for Gemini-backed insights (Gemini SDK mocked)."""

from datetime import date
from unittest.mock import MagicMock, PropertyMock, patch

import pytest
from google.api_core import exceptions as google_exceptions

from farm_analytics.aggregator import aggregate
from farm_analytics.insights import (
    InsightsClient,
    InsightsError,
    build_insight_request,
    build_prompt,
    health_status,
    parse_insight_text,
    profit_margin,
)
from farm_analytics.schemas import InsightRequest

GEMINI_TEXT = """SUMMARY:
The farm is **profitable** with healthy wheat sales.

RECOMMENDATIONS:
1. Diversify into pulses.
2. **Negotiate** fertilizer prices.
3) Track labor hours weekly.

CONCERNS:
Expenses are concentrated in fertilizer.
"""


def _request(revenue=1500.0, expenses=300.0, **kwargs):
    return InsightRequest(
        total_revenue=revenue,
        total_expenses=expenses,
        net_profit=revenue - expenses,
        **kwargs,
    )


class TestFigures:
    def test_profit_margin(self):
        assert profit_margin(_request()) == pytest.approx(80.0)

    def test_profit_margin_without_revenue(self):
        assert profit_margin(_request(revenue=0, expenses=100)) == 0.0

    def test_health_good(self):
        assert health_status(_request()) == "good"

    def test_health_warning_when_expenses_high(self):
        assert health_status(_request(revenue=1000, expenses=800)) == "warning"

    def test_health_critical_when_not_profitable(self):
        assert health_status(_request(revenue=1000, expenses=1000)) == "critical"


class TestBuildRequest:
    def test_from_ledger(self, march_ledger):
        totals = aggregate(march_ledger.sales, march_ledger.expenses, "all", date(2024, 3, 25))
        request = build_insight_request(march_ledger, totals, location="Punjab")

        assert request.total_revenue == 1500
        assert request.net_profit == 1200
        assert request.inventory_count == 1
        assert request.sales_count == 2
        assert request.expenses_count == 1
        assert request.top_crops == ["Wheat"]
        assert request.top_expense_categories == ["Fertilizer"]
        assert request.location == "Punjab"

    def test_prompt_mentions_figures(self):
        prompt = build_prompt(_request(top_crops=["Wheat", "Rice"], location="Punjab"))
        assert "₹1,500.00" in prompt
        assert "Profit Margin: 80.0%" in prompt
        assert "Top Crops: Wheat, Rice" in prompt
        assert "Punjab region" in prompt
        assert "Major Expense Categories" not in prompt


class TestParseInsightText:
    def test_sections(self):
        insight = parse_insight_text(GEMINI_TEXT, _request())

        assert insight.summary == "The farm is profitable with healthy wheat sales."
        assert insight.recommendations == [
            "Diversify into pulses.",
            "Negotiate fertilizer prices.",
            "Track labor hours weekly.",
        ]
        assert insight.concerns == "Expenses are concentrated in fertilizer."
        assert insight.profit_margin == pytest.approx(80.0)
        assert insight.health_status == "good"

    def test_missing_sections(self):
        insight = parse_insight_text("Nothing useful here.", _request())
        assert insight.summary == ""
        assert insight.recommendations == []
        assert insight.concerns == ""

    def test_dump_uses_camel_case(self):
        dumped = parse_insight_text(GEMINI_TEXT, _request()).model_dump(by_alias=True)
        assert set(dumped) == {
            "summary", "recommendations", "concerns", "profitMargin", "healthStatus"
        }


@pytest.fixture
def mock_genai():
    with patch("farm_analytics.insights.genai") as genai:
        genai.GenerativeModel.return_value.generate_content.return_value.text = GEMINI_TEXT
        yield genai


class TestInsightsClient:
    def test_calls_generate_content(self, mock_genai):
        client = InsightsClient(api_key="test-key", model="gemini-test")

        insight = client.get_insights(_request())

        assert insight.recommendations[0] == "Diversify into pulses."
        mock_genai.configure.assert_called_once_with(api_key="test-key")
        mock_genai.GenerativeModel.assert_called_once_with("gemini-test")
        prompt = mock_genai.GenerativeModel.return_value.generate_content.call_args.args[0]
        assert "Total Revenue" in prompt

    def test_caches_identical_requests(self, mock_genai):
        client = InsightsClient(api_key="k")

        first = client.get_insights(_request())
        second = client.get_insights(_request())

        assert first == second
        assert mock_genai.GenerativeModel.return_value.generate_content.call_count == 1

    def test_cache_expires(self, mock_genai):
        now = [0.0]
        client = InsightsClient(api_key="k", ttl_seconds=60, clock=lambda: now[0])

        client.get_insights(_request())
        now[0] = 61.0
        client.get_insights(_request())

        assert mock_genai.GenerativeModel.return_value.generate_content.call_count == 2

    def test_expired_entries_are_dropped(self, mock_genai):
        now = [0.0]
        client = InsightsClient(api_key="k", ttl_seconds=60, clock=lambda: now[0])

        client.get_insights(_request())
        now[0] = 100.0
        client.get_insights(_request(revenue=2000))

        assert list(client._cache) == [client.cache_key(_request(revenue=2000))]

    def test_different_requests_not_shared(self, mock_genai):
        client = InsightsClient(api_key="k")

        client.get_insights(_request())
        client.get_insights(_request(revenue=2000))

        assert mock_genai.GenerativeModel.return_value.generate_content.call_count == 2

    def test_missing_api_key(self, mock_genai):
        client = InsightsClient(api_key="")
        with pytest.raises(InsightsError, match="GOOGLE_API_KEY"):
            client.get_insights(_request())
        mock_genai.GenerativeModel.assert_not_called()

    def test_api_error(self, mock_genai):
        generate = mock_genai.GenerativeModel.return_value.generate_content
        generate.side_effect = google_exceptions.ServiceUnavailable("boom")
        client = InsightsClient(api_key="k")
        with pytest.raises(InsightsError, match="boom"):
            client.get_insights(_request())

    def test_empty_answer(self, mock_genai):
        response = MagicMock()
        type(response).text = PropertyMock(side_effect=ValueError("no candidates"))
        mock_genai.GenerativeModel.return_value.generate_content.return_value = response
        client = InsightsClient(api_key="k")
        with pytest.raises(InsightsError, match="Unexpected"):
            client.get_insights(_request())
