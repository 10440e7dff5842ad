"""
API tests for /api/analysis - structured analysis and per-user quota.
"""

from conftest import ALICE, BOB, as_user


def _analyze(client, user=ALICE, content="Plan a trip to {{city}}"):
    return client.post("/api/analysis", json={"promptContent": content}, headers=as_user(user))


class TestAnalysisEndpoint:

    def test_returns_camel_case_structure(self, client):
        response = _analyze(client)
        assert response.status_code == 200
        body = response.json()
        assert body["suggestedTags"] == ["Travel", "Planning"]
        assert [v["name"] for v in body["variables"]] == ["city", "trip_length"]
        assert body["exports"]["json"]["original"] == "Plan a trip to {{city}}"

    def test_oversized_input_costs_no_quota(self, client, provider):
        response = _analyze(client, content="x" * 50_001)
        assert response.status_code == 422
        assert response.json()["error"] == "ANALYSIS_INPUT_TOO_LONG"
        assert provider.calls == 0

        quota = client.get("/api/analysis/quota", headers=as_user(ALICE)).json()
        assert quota["minuteRemaining"] == 10

    def test_provider_failure_is_502(self, client, provider):
        provider.error = RuntimeError("upstream exploded")
        response = _analyze(client)
        assert response.status_code == 502
        assert response.json()["error"] == "ANALYSIS_FAILED"


class TestQuotaWindows:

    def test_eleventh_call_in_a_minute_is_rate_limited(self, client, clock, provider):
        for _ in range(10):
            assert _analyze(client).status_code == 200

        limited = _analyze(client)
        assert limited.status_code == 429
        assert limited.headers["Retry-After"] == "60"
        assert limited.json()["reason"] == "minute"
        assert provider.calls == 10

        # Other users have their own windows.
        assert _analyze(client, user=BOB).status_code == 200

        clock.tick(seconds=61)
        assert _analyze(client).status_code == 200

    def test_quota_reports_remaining(self, client):
        _analyze(client)
        _analyze(client)
        quota = client.get("/api/analysis/quota", headers=as_user(ALICE)).json()
        assert quota["minuteRemaining"] == 8
        assert quota["dailyRemaining"] == 48
        assert quota["minuteLimit"] == 10
        assert quota["minuteResetsAt"] is not None

    def test_daily_limit(self, client, clock):
        for _ in range(5):
            for _ in range(10):
                assert _analyze(client).status_code == 200
            clock.tick(seconds=61)

        limited = _analyze(client)
        assert limited.status_code == 429
        assert limited.json()["reason"] == "daily"


class TestAnalysisHistory:

    def test_attempts_are_recorded_with_outcome(self, client, clock, provider):
        assert _analyze(client).status_code == 200
        clock.tick(seconds=1)
        provider.error = RuntimeError("upstream exploded")
        assert _analyze(client).status_code == 502
        # Rejected before the model is called, so not an attempt.
        assert _analyze(client, content="   ").status_code == 422

        page = client.get("/api/analysis/history", headers=as_user(ALICE)).json()
        assert page["total"] == 2
        assert page["page"] == 1
        assert [entry["success"] for entry in page["data"]] == [False, True]
        assert page["data"][0]["promptLength"] == len("Plan a trip to {{city}}")

        assert client.get("/api/analysis/history", headers=as_user(BOB)).json()["total"] == 0

    def test_pagination(self, client, clock):
        for _ in range(3):
            _analyze(client)
            clock.tick(seconds=1)
        second = client.get(
            "/api/analysis/history", params={"page": 2, "pageSize": 2}, headers=as_user(ALICE),
        ).json()
        assert second["total"] == 3
        assert second["pageSize"] == 2
        assert len(second["data"]) == 1

    def test_daily_and_monthly_buckets(self, client, provider):
        _analyze(client)
        provider.error = RuntimeError("boom")
        _analyze(client)

        daily = client.get("/api/analysis/history/daily", params={"days": 3}, headers=as_user(ALICE)).json()
        assert [d["date"] for d in daily] == ["2024-12-30", "2024-12-31", "2025-01-01"]
        assert daily[0] == {"date": "2024-12-30", "count": 0, "successRate": 100}
        assert daily[2]["count"] == 2
        assert daily[2]["successRate"] == 50

        monthly = client.get("/api/analysis/history/monthly", params={"months": 2}, headers=as_user(ALICE)).json()
        assert monthly == [
            {"month": "2024-12", "count": 0, "successRate": 100},
            {"month": "2025-01", "count": 2, "successRate": 50},
        ]

    def test_summary(self, client, clock):
        empty = client.get("/api/analysis/history/summary", headers=as_user(ALICE)).json()
        assert empty["totalAnalyses"] == 0
        assert empty["firstAnalysis"] is None

        _analyze(client, content="abcd")
        clock.tick(hours=1)
        _analyze(client, content="abcdefgh")

        summary = client.get("/api/analysis/history/summary", headers=as_user(ALICE)).json()
        assert summary["totalAnalyses"] == 2
        assert summary["totalSuccessful"] == 2
        assert summary["averagePromptLength"] == 6
        assert summary["firstAnalysis"] < summary["lastAnalysis"]
