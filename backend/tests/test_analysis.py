"""
Tests for the analysis package - analyzer validation and quota windows.
"""

import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from conftest import CANNED_ANALYSIS, FakeProvider
from promptforge.errors import (
    AnalysisFailedError,
    AnalysisTimeoutError,
    DomainValidationError,
    RateLimitError,
    classify_analysis_error,
)
from promptforge.services.analysis.analyzer import (
    PromptAnalyzer,
    sanitize_ai_tags,
    sanitize_variable_names,
    validate_ai_response,
    validate_input,
)
from promptforge.services.analysis.quota import QuotaService


# =============================================================================
# Input / output validation
# =============================================================================

class TestValidation:

    def test_input_trimmed(self):
        assert validate_input("  hello  ") == "hello"

    @pytest.mark.parametrize("value", ["", "   ", None, 42])
    def test_input_rejected(self, value):
        with pytest.raises(DomainValidationError):
            validate_input(value)

    def test_input_length_limit(self):
        validate_input("x" * 50_000)
        with pytest.raises(DomainValidationError) as exc_info:
            validate_input("x" * 50_001)
        assert exc_info.value.code == "ANALYSIS_INPUT_TOO_LONG"

    def test_ai_variable_name_charset(self):
        with pytest.raises(AnalysisFailedError):
            validate_ai_response({"variables": [{"name": "bad name"}]})

    def test_ai_too_many_objectives(self):
        with pytest.raises(AnalysisFailedError):
            validate_ai_response({"metadata": {"role": "r", "objectives": ["o"] * 21}})

    def test_ai_invalid_category_rejected(self):
        with pytest.raises(AnalysisFailedError):
            validate_ai_response({"metadata": {"categories": ["AI/ML"]}})

    def test_sanitize_variable_names(self):
        result = sanitize_variable_names([{"name": "user-name", "type": "STRING"}, {"name": "ok"}])
        assert [v["name"] for v in result] == ["user_name", "ok"]
        assert result[0]["type"] == "STRING"

    def test_sanitize_ai_tags(self):
        raw = [" Travel ", "Travel", "", 3, "AI/ML", "x" * 51, "Web-Dev"]
        assert sanitize_ai_tags(raw) == ["Travel", "Web-Dev"]
        assert sanitize_ai_tags(None) == []
        assert len(sanitize_ai_tags([f"tag{i}" for i in range(30)])) == 20


# =============================================================================
# PromptAnalyzer
# =============================================================================

class TestPromptAnalyzer:

    def test_successful_analysis(self):
        analyzer = PromptAnalyzer(FakeProvider(CANNED_ANALYSIS))
        result = asyncio.run(analyzer.analyze("Plan a trip to {{city}}"))

        assert [v["name"] for v in result["variables"]] == ["city", "trip_length"]
        assert result["suggested_tags"] == ["Travel", "Planning"]
        assert result["exports"]["json"]["original"] == "Plan a trip to {{city}}"
        assert "### {{city}}" in result["exports"]["markdown"]
        assert "## Original" in result["exports"]["markdown"]

    def test_renamed_variables_match_template(self):
        response = dict(
            CANNED_ANALYSIS,
            sections={"instructions": "Plan {{trip-length}} days in {{city}}"},
            prompt_template="Plan {{trip-length}} days in {{city}}",
        )
        analyzer = PromptAnalyzer(FakeProvider(response))
        result = asyncio.run(analyzer.analyze("Plan a trip"))

        assert [v["name"] for v in result["variables"]] == ["city", "trip_length"]
        assert result["prompt_template"] == "Plan {{trip_length}} days in {{city}}"
        assert result["sections"]["instructions"] == "Plan {{trip_length}} days in {{city}}"
        assert "{{trip-length}}" not in result["exports"]["markdown"]
        assert result["exports"]["json"]["prompt_template"] == result["prompt_template"]

    def test_invalid_ai_output_fails(self):
        response = dict(CANNED_ANALYSIS, metadata={"role": "r", "objectives": [], "categories": ["bad/category"]})
        analyzer = PromptAnalyzer(FakeProvider(response))
        with pytest.raises(AnalysisFailedError):
            asyncio.run(analyzer.analyze("Plan a trip"))

    def test_client_timeout_is_distinct(self):
        analyzer = PromptAnalyzer(FakeProvider(delay=0.5), client_timeout=0.01)
        with pytest.raises(AnalysisTimeoutError) as exc_info:
            asyncio.run(analyzer.analyze("Plan a trip"))
        assert classify_analysis_error(exc_info.value) == {"type": "TIMEOUT"}

    def test_provider_error_is_generic(self):
        analyzer = PromptAnalyzer(FakeProvider(error=RuntimeError("boom")))
        with pytest.raises(AnalysisFailedError) as exc_info:
            asyncio.run(analyzer.analyze("Plan a trip"))
        assert classify_analysis_error(exc_info.value)["type"] == "GENERIC"

    def test_provider_rate_limit(self):
        class TooManyRequests(Exception):
            status_code = 429

        analyzer = PromptAnalyzer(FakeProvider(error=TooManyRequests("slow down")))
        with pytest.raises(RateLimitError) as exc_info:
            asyncio.run(analyzer.analyze("Plan a trip"))
        assert classify_analysis_error(exc_info.value)["type"] == "RATE_LIMIT"


# =============================================================================
# QuotaService fail-open
# =============================================================================

class BrokenSession:
    """AsyncSession stand-in whose queries always fail."""

    def __init__(self):
        self.rolled_back = 0

    async def execute(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is down"))

    async def rollback(self):
        self.rolled_back += 1


class TestQuotaFailOpen:

    def test_get_quota_grants_full_allowance(self):
        session = BrokenSession()
        quota = asyncio.run(QuotaService(session).get_quota("u1"))
        assert quota["minute_remaining"] == 10
        assert quota["daily_remaining"] == 50
        assert quota["minute_resets_at"] is None
        assert session.rolled_back == 1

    def test_consume_allows_call(self):
        session = BrokenSession()
        asyncio.run(QuotaService(session).consume("u1"))
        assert session.rolled_back == 1
