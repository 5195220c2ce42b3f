"""Tests for the consolidation engine."""

import pytest
from conftest import provider_result, score_metric, vital_metric

from pagecritic.consolidation import (
    DEFAULT_PLATFORM_WEIGHT,
    calculate_category_scores,
    consolidate,
    get_platform_weight,
    partition_metrics,
    select_web_vitals,
    weighted_score,
)
from pagecritic.platforms.orchestrator import build_fallback_result
from pagecritic.platforms.types import Category, Metric, ProviderResult, WEB_VITAL_IDS

P = Category.PERFORMANCE
A = Category.ACCESSIBILITY


@pytest.fixture
def mixed_results():
    return [
        provider_result(
            "lighthouse",
            score_metric("lighthouse", P, 85),
            score_metric("lighthouse", A, 92),
            vital_metric("lighthouse", "cls", 0.05),
        ),
        provider_result(
            "pagespeed",
            score_metric("pagespeed", P, 87),
            vital_metric("pagespeed", "lcp", 2300),
            vital_metric("pagespeed", "cls", 0.2),
        ),
        provider_result(
            "webpagetest",
            score_metric("webpagetest", P, 55),
            vital_metric("webpagetest", "lcp", 2800),
            vital_metric("webpagetest", "si", 2500),
        ),
    ]


class TestWeights:
    def test_known_weights(self):
        assert get_platform_weight("lighthouse") == 0.5
        assert get_platform_weight("pagespeed") == 0.3
        assert get_platform_weight("webpagetest") == 0.2

    def test_unknown_platform_defaults(self):
        assert get_platform_weight("gtmetrix") == DEFAULT_PLATFORM_WEIGHT == 0.1


class TestCategoryScoring:
    """Tests for weighted category scores."""

    def test_weighted_example(self):
        """(85 * 0.5 + 87 * 0.3) / 0.8 = 85.75 rounds to 86."""
        metrics = [score_metric("lighthouse", P, 85), score_metric("pagespeed", P, 87)]
        assert weighted_score(metrics) == 86

    def test_unknown_platform_contributes_with_default_weight(self):
        """(90 * 0.5 + 40 * 0.1) / 0.6 = 81.67 rounds to 82."""
        metrics = [score_metric("lighthouse", P, 90), score_metric("gtmetrix", P, 40)]
        assert weighted_score(metrics) == 82

    def test_value_only_metrics_ignored(self):
        metrics = [
            score_metric("lighthouse", P, 70),
            Metric(id="first-byte", title="TTFB", category=P, platform="pagespeed", value=300),
        ]
        assert weighted_score(metrics) == 70

    def test_no_scored_metric_gives_zero(self):
        metrics = [Metric(id="first-byte", title="TTFB", category=P, platform="lighthouse", value=300)]
        assert weighted_score(metrics) == 0

    def test_half_rounds_up(self):
        metrics = [score_metric("lighthouse", P, 85), score_metric("lighthouse", P, 86)]
        assert weighted_score(metrics) == 86

    def test_web_vitals_not_scored(self):
        categories = partition_metrics([score_metric("lighthouse", Category.WEB_VITALS, 10)])
        assert set(calculate_category_scores(categories)) == {
            "performance", "accessibility", "seo", "best-practices",
        }


class TestWebVitalSelection:
    """Web Vitals are picked by provider priority, never blended."""

    def test_fallback_order_skips_missing_provider(self):
        metrics = [vital_metric("webpagetest", "lcp", 2800), vital_metric("pagespeed", "lcp", 2300)]
        assert select_web_vitals(metrics) == {"lcp": 2300}

    def test_lighthouse_wins(self):
        metrics = [
            vital_metric("pagespeed", "cls", 0.2),
            vital_metric("lighthouse", "cls", 0.05),
        ]
        assert select_web_vitals(metrics)["cls"] == 0.05

    def test_provider_without_value_is_skipped(self):
        metrics = [vital_metric("lighthouse", "lcp", None), vital_metric("webpagetest", "lcp", 2800)]
        assert select_web_vitals(metrics) == {"lcp": 2800}

    def test_unmeasured_vitals_omitted(self):
        assert select_web_vitals([]) == {}

    def test_unknown_platform_vitals_ignored(self):
        assert select_web_vitals([vital_metric("gtmetrix", "lcp", 1000)]) == {}

    def test_zero_value_is_a_measurement(self):
        assert select_web_vitals([vital_metric("lighthouse", "cls", 0)]) == {"cls": 0}


class TestConsolidate:
    """Tests for the consolidate entrypoint."""

    def test_determinism(self, mixed_results):
        first = consolidate(mixed_results, now="t")
        second = consolidate(mixed_results, now="t")

        assert first.scores == second.scores
        assert first.web_vitals == second.web_vitals
        assert first.to_dict() == second.to_dict()

    def test_failure_isolation(self, mixed_results):
        """An errored result has the same effect as removing it."""
        with_error = mixed_results + [provider_result("gtmetrix", error="boom")]
        errored_pagespeed = [
            mixed_results[0],
            provider_result("pagespeed", error="PageSpeed API error: 500"),
            mixed_results[2],
        ]

        assert consolidate(with_error).scores == consolidate(mixed_results).scores
        assert consolidate(errored_pagespeed).scores == consolidate([mixed_results[0], mixed_results[2]]).scores

    def test_errored_result_metrics_excluded(self):
        errored = ProviderResult(
            platform="lighthouse", url="https://example.com", timestamp="t",
            metrics=(score_metric("lighthouse", P, 10),), error="late failure",
        )
        result = consolidate([errored, provider_result("pagespeed", score_metric("pagespeed", P, 90))])

        assert result.scores["performance"] == 90
        assert result.platforms == ["pagespeed"]

    def test_mixed_scores_and_vitals(self, mixed_results):
        result = consolidate(mixed_results)

        # (85*0.5 + 87*0.3 + 55*0.2) / 1.0 = 79.6
        assert result.scores == {"performance": 80, "accessibility": 92, "seo": 0, "best-practices": 0}
        assert result.web_vitals == {"lcp": 2300, "cls": 0.05, "si": 2500}
        assert result.platforms == ["lighthouse", "pagespeed", "webpagetest"]
        assert len(result.metrics) == 9
        assert set(result.categories) == {c.value for c in Category}

    def test_empty_input(self):
        result = consolidate([])

        assert result.platforms == []
        assert result.metrics == []
        assert result.scores == {"performance": 0, "accessibility": 0, "seo": 0, "best-practices": 0}
        assert all(result.web_vitals.get(v) is None for v in WEB_VITAL_IDS)

    def test_string_categories_are_scored(self):
        metric = Metric(id="seo-score", title="SEO Score", category="seo", platform="lighthouse", score=77)

        result = consolidate([provider_result("lighthouse", metric)])

        assert result.scores["seo"] == 77
        assert result.categories["seo"] == [metric]

    def test_all_errored(self):
        result = consolidate([provider_result("lighthouse", error="down"), provider_result("pagespeed", error="down")])

        assert result.platforms == []
        assert result.web_vitals == {}
        assert result.url == "https://example.com"

    def test_fallback_has_scores_but_no_vitals(self):
        result = consolidate([build_fallback_result("https://example.com")])

        assert result.scores == {"performance": 85, "accessibility": 90, "seo": 88, "best-practices": 92}
        assert result.web_vitals == {}

    def test_inert_metrics_ignored(self):
        inert = Metric(id="lcp", title="LCP", category=Category.WEB_VITALS, platform="lighthouse")
        result = consolidate([provider_result("lighthouse", inert, score_metric("lighthouse", P, 50))])

        assert result.web_vitals == {}
        assert result.scores["performance"] == 50

    def test_input_metrics_not_mutated(self, mixed_results):
        before = [r.metrics for r in mixed_results]
        consolidate(mixed_results)
        assert [r.metrics for r in mixed_results] == before

    def test_url_from_first_survivor(self):
        results = [
            provider_result("lighthouse", error="down", url="https://a.test"),
            provider_result("pagespeed", score_metric("pagespeed", P, 1), url="https://b.test"),
        ]
        assert consolidate(results).url == "https://b.test"
