"""
Overall score weighting and the combined audit run.
"""
import asyncio
from unittest.mock import patch

import httpx
import pytest

from app.services import audit_engine
from app.services.audit_engine import perform_full_audit
from app.services.prober import PageFetchError
from app.services.score_calculator import (
    WEIGHTS, calculate_overall_score, generate_summary, score_color, score_label,
)

from conftest import (
    PAGESPEED_URL, SECURE_HEADERS, mock_client, pagespeed_payload, raises, site_routes,
)


# ─── Overall score ─────────────────────────────────────────────────────────────

class TestOverallScore:

    def test_weights_sum_to_100(self):
        assert sum(WEIGHTS.values()) == 100

    def test_known_values(self):
        assert calculate_overall_score(100, 100, 100) == 100
        assert calculate_overall_score(0, 0, 0) == 0
        assert calculate_overall_score(100, 92, 100) == 97
        assert calculate_overall_score(33, 50, 47) == 43

    def test_halves_round_up(self):
        # 0.35 * 10 = 3.5
        assert calculate_overall_score(10, 0, 0) == 4
        # 0.30 * 5 = 1.5
        assert calculate_overall_score(0, 0, 5) == 2

    def test_always_within_bounds(self):
        for seo in range(0, 101, 7):
            for perf in range(0, 101, 11):
                for sec in range(0, 101, 13):
                    overall = calculate_overall_score(seo, perf, sec)
                    assert min(seo, perf, sec) <= overall <= max(seo, perf, sec)

    def test_out_of_range_inputs_are_clamped(self):
        assert calculate_overall_score(150, -5, 100) == 65


class TestScoreLabels:

    @pytest.mark.parametrize("score,label", [(100, "Good"), (80, "Good"), (79, "Needs Improvement"),
                                             (50, "Needs Improvement"), (49, "Poor"), (0, "Poor")])
    def test_label_bands(self, score, label):
        assert score_label(score) == label

    def test_colors_follow_bands(self):
        assert score_color(90) != score_color(60) != score_color(10)

    def test_summary_names_weak_areas(self):
        assert "Weakest areas: SEO, security." in generate_summary(45, 33, 80, 20)
        assert "No critical weaknesses" in generate_summary(97, 100, 92, 100)


# ─── Full audit ────────────────────────────────────────────────────────────────

class TestPerformFullAudit:

    @pytest.mark.asyncio
    async def test_healthy_site(self):
        routes = site_routes(headers=SECURE_HEADERS)
        routes[PAGESPEED_URL] = pagespeed_payload(0.92)
        async with mock_client(routes) as client:
            result = await perform_full_audit("example.com", client)
        assert (result.seo_score, result.performance_score, result.security_score) == (100, 92, 100)
        assert result.overall_score == 97
        assert result.website_url == "https://example.com"
        assert result.audit_date.tzinfo is not None
        assert result.seo.score == result.seo_score

    @pytest.mark.asyncio
    async def test_pagespeed_down_still_succeeds(self):
        routes = site_routes(headers=SECURE_HEADERS)
        routes[PAGESPEED_URL] = raises(httpx.ReadTimeout)
        async with mock_client(routes) as client:
            result = await perform_full_audit("https://example.com", client)
        assert result.performance_score == 50
        assert result.overall_score == calculate_overall_score(100, 50, 100) == 83

    @pytest.mark.asyncio
    async def test_unreachable_page_fails_the_audit(self):
        routes = {
            "https://example.com": raises(httpx.ConnectError),
            PAGESPEED_URL: pagespeed_payload(),
        }
        async with mock_client(routes) as client:
            with pytest.raises(PageFetchError):
                await perform_full_audit("https://example.com", client)

    @pytest.mark.asyncio
    async def test_wire_format_is_camel_case(self):
        routes = site_routes(headers=SECURE_HEADERS)
        routes[PAGESPEED_URL] = pagespeed_payload()
        async with mock_client(routes) as client:
            result = await perform_full_audit("https://example.com", client)
        wire = result.model_dump(mode="json", by_alias=True)
        assert {"seoScore", "performanceScore", "securityScore", "overallScore",
                "auditDate", "websiteUrl"} <= set(wire)
        assert "coreWebVitals" in wire["performance"]
        assert "metaDescription" in wire["seo"]
        assert "strictTransportSecurity" in wire["security"]["headers"]

    @pytest.mark.asyncio
    async def test_failed_page_cancels_sibling_scorers(self):
        finished = []

        async def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "GET" and str(request.url).rstrip("/") == "https://example.com":
                return httpx.Response(404, text="gone")
            await asyncio.sleep(0.05)
            finished.append(str(request.url))
            return httpx.Response(200, text="ok")

        outcomes = {}
        real_security = audit_engine.analyze_security

        async def recording_security(url, client):
            try:
                outcomes["security"] = await real_security(url, client)
            except asyncio.CancelledError:
                outcomes["security"] = "cancelled"
                raise
            except Exception as e:
                outcomes["security"] = repr(e)
                raise

        def own_client(timeout=None):
            return httpx.AsyncClient(transport=httpx.MockTransport(handler))

        with patch.object(audit_engine, "build_client", own_client), \
                patch.object(audit_engine, "analyze_security", recording_security):
            with pytest.raises(PageFetchError):
                await perform_full_audit("https://example.com")

        assert outcomes == {"security": "cancelled"}
        await asyncio.sleep(0.1)
        assert finished == []
