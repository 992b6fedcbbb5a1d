"""Farm business insights from the Gemini API.

The service is treated as a plain text generator: we send a prompt built from
the ledger totals and split the answer into summary, recommendations and
concerns. Margin and health status are computed locally from the figures.
"""

import json
import logging
import re
import time
from typing import Callable, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from . import ledger, settings
from .schemas import AggregateResult, AIInsight, AnalyticsData, InsightRequest

logger = logging.getLogger(__name__)

# Expenses above this share of revenue flag a profitable farm as "warning".
EXPENSE_WARNING_RATIO = 0.7

_SUMMARY_RE = re.compile(r"SUMMARY:\s*\n(.*?)(?=\n\s*RECOMMENDATIONS:|$)", re.DOTALL)
_RECOMMENDATIONS_RE = re.compile(r"RECOMMENDATIONS:\s*\n(.*?)(?=\n\s*CONCERNS:|$)", re.DOTALL)
_CONCERNS_RE = re.compile(r"CONCERNS:\s*\n(.*)$", re.DOTALL)
_NUMBERING_RE = re.compile(r"^\s*(?:\d+[.)]|[-*•])\s*")


class InsightsError(Exception):
    """Raised when insights cannot be generated."""


def build_insight_request(
    data: AnalyticsData,
    totals: AggregateResult,
    location: Optional[str] = None,
    top_n: int = 3,
) -> InsightRequest:
    return InsightRequest(
        total_revenue=totals.total_revenue,
        total_expenses=totals.total_expenses,
        net_profit=totals.net_profit,
        inventory_count=len(data.inventory),
        sales_count=len(data.sales),
        expenses_count=len(data.expenses),
        top_crops=ledger.top_crops(data, top_n),
        top_expense_categories=ledger.top_expense_categories(data, top_n),
        location=location,
    )


def profit_margin(request: InsightRequest) -> float:
    if request.total_revenue <= 0:
        return 0.0
    return request.net_profit / request.total_revenue * 100


def health_status(request: InsightRequest) -> str:
    if request.net_profit <= 0:
        return "critical"
    if request.total_expenses > request.total_revenue * EXPENSE_WARNING_RATIO:
        return "warning"
    return "good"


def build_prompt(request: InsightRequest) -> str:
    location = request.location
    lines = [
        "You are an agricultural business analyst. Based on the following farm analytics data"
        + (f" for a farm located in {location}" if location else "")
        + ", provide:",
        "1. A brief summary (2-3 sentences) of the current farm business status",
        "2. 3-4 specific actionable recommendations to improve profitability"
        + (
            f", including specific crop suggestions and harvesting techniques suitable for the {location} region"
            if location
            else ""
        ),
        "3. Any potential issues or concerns to address",
        "",
        "Analytics Data:",
    ]
    if location:
        lines.append(f"- Location: {location}")
    lines += [
        f"- Total Revenue: ₹{request.total_revenue:,.2f}",
        f"- Total Expenses: ₹{request.total_expenses:,.2f}",
        f"- Net Profit: ₹{request.net_profit:,.2f}",
        f"- Profit Margin: {profit_margin(request):.1f}%",
        f"- Inventory Records: {request.inventory_count}",
        f"- Sales Records: {request.sales_count}",
        f"- Expense Records: {request.expenses_count}",
    ]
    if request.top_crops:
        lines.append(f"- Top Crops: {', '.join(request.top_crops)}")
    if request.top_expense_categories:
        lines.append(
            f"- Major Expense Categories: {', '.join(request.top_expense_categories)}"
        )
    lines += [
        "",
        "Please format your response as:",
        "SUMMARY:",
        "[Your 2-3 sentence summary]",
        "",
        "RECOMMENDATIONS:",
        "1. [First recommendation]",
        "2. [Second recommendation]",
        "3. [Third recommendation]",
        "4. [Fourth recommendation]",
        "",
        "CONCERNS:",
        "[Any potential issues or areas of concern]",
        "",
        "Keep the response practical, specific to farming, and actionable. "
        "Do not use markdown formatting (like **bold**) in the output.",
    ]
    return "\n".join(lines)


def _section(pattern: re.Pattern, text: str) -> str:
    match = pattern.search(text)
    return match.group(1).strip() if match else ""


def parse_insight_text(text: str, request: InsightRequest) -> AIInsight:
    """Splits a SUMMARY / RECOMMENDATIONS / CONCERNS answer into an AIInsight."""
    summary = _section(_SUMMARY_RE, text).replace("**", "")
    concerns = _section(_CONCERNS_RE, text).replace("**", "")
    recommendations = [
        _NUMBERING_RE.sub("", line.replace("**", "")).strip()
        for line in _section(_RECOMMENDATIONS_RE, text).splitlines()
        if line.strip()
    ]
    return AIInsight(
        summary=summary,
        recommendations=recommendations,
        concerns=concerns,
        profit_margin=profit_margin(request),
        health_status=health_status(request),
    )


class InsightsClient:
    """
    Generates insights with a Gemini model and caches answers in memory,
    keyed by the request figures, for `ttl_seconds`.

    The cache lives as long as the client, so it only saves calls when one
    client serves many requests (a long-running process). Each CLI run builds
    a fresh client and always calls the model.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api_key = api_key if api_key is not None else settings.GOOGLE_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.INSIGHTS_TTL_SECONDS
        self._clock = clock
        self._cache: dict[str, tuple[AIInsight, float]] = {}

    @staticmethod
    def cache_key(request: InsightRequest) -> str:
        return json.dumps(request.model_dump(mode="json", by_alias=True), sort_keys=True)

    def _prune(self, now: float) -> None:
        expired = [key for key, (_, expires) in self._cache.items() if expires <= now]
        for key in expired:
            del self._cache[key]

    def get_insights(self, request: InsightRequest) -> AIInsight:
        key = self.cache_key(request)
        now = self._clock()

        cached = self._cache.get(key)
        if cached and cached[1] > now:
            logger.info("Returning cached insights.")
            return cached[0]

        started = time.perf_counter()
        text = self._generate(build_prompt(request))
        insight = parse_insight_text(text, request)
        logger.info(f"Insights generated in {(time.perf_counter() - started) * 1000:.0f} ms.")

        self._prune(now)
        self._cache[key] = (insight, now + self.ttl_seconds)
        return insight

    def _generate(self, prompt: str) -> str:
        if not self.api_key:
            raise InsightsError(
                "GOOGLE_API_KEY is not set. Add it to your .env file or environment."
            )

        genai.configure(api_key=self.api_key)
        model = genai.GenerativeModel(self.model)

        try:
            response = model.generate_content(
                prompt, request_options={"timeout": settings.REQUEST_TIMEOUT}
            )
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"❌ Error calling Gemini: {e}")
            raise InsightsError(f"Failed to generate insights: {e}") from e

        try:
            return response.text
        except ValueError as e:
            # Raised by the SDK when the answer has no text (blocked or empty candidates)
            raise InsightsError(f"Unexpected Gemini response: {e}") from e
