"""Tests for Lighthouse report normalization."""

from conftest import build_lhr

from pagecritic.platforms.lhr import (
    MAX_AUDITS_PER_GROUP,
    extract_category_scores,
    extract_failing_audits,
    extract_opportunities,
    metrics_from_lhr,
)
from pagecritic.platforms.lighthouse import LighthouseProvider
from pagecritic.platforms.types import Category, Severity


class TestLhrNormalization:
    """Tests for metrics_from_lhr and its helpers."""

    def test_web_vitals_use_shared_targets(self, lhr):
        metrics = metrics_from_lhr(lhr, LighthouseProvider())
        vitals = {m.id: m for m in metrics if m.category == Category.WEB_VITALS}

        assert set(vitals) == {"lcp", "cls", "tti"}
        assert vitals["lcp"].value == 2100.5
        assert vitals["lcp"].target == 2500
        assert vitals["lcp"].unit == "ms"
        assert vitals["cls"].unit is None
        assert all(m.platform == "lighthouse" for m in vitals.values())

    def test_category_scores_scaled_to_100(self, lhr):
        metrics = extract_category_scores(lhr["categories"], LighthouseProvider())
        scores = {m.id: m.score for m in metrics}

        assert scores == {
            "performance-score": 85,
            "accessibility-score": 92,
            "seo-score": 90,
            "best-practices-score": 75,
        }

    def test_null_category_score_skipped(self):
        lhr = build_lhr(scores={"performance": None, "seo": 0.5})
        metrics = extract_category_scores(lhr["categories"], LighthouseProvider())
        assert [m.id for m in metrics] == ["seo-score"]

    def test_opportunities_sorted_by_savings(self, lhr):
        opportunities = extract_opportunities(lhr["audits"], "lighthouse")

        assert [o.id for o in opportunities] == ["render-blocking-resources", "unused-javascript"]
        assert opportunities[0].severity == Severity.HIGH
        assert opportunities[1].severity == Severity.MEDIUM
        assert opportunities[0].unit == "ms"

    def test_opportunities_capped(self):
        audits = {
            f"audit-{i}": {"id": f"audit-{i}", "title": f"A{i}",
                           "details": {"type": "opportunity", "overallSavingsMs": 100 + i}}
            for i in range(15)
        }
        opportunities = extract_opportunities(audits, "pagespeed")
        assert len(opportunities) == MAX_AUDITS_PER_GROUP
        assert opportunities[0].value == 114

    def test_failing_audits_skip_passed_and_null(self, lhr):
        issues = extract_failing_audits(lhr["audits"], lhr["categories"], Category.ACCESSIBILITY, "lighthouse")

        assert [i.id for i in issues] == ["color-contrast"]
        assert issues[0].score == 0
        assert issues[0].severity == Severity.HIGH

    def test_best_practice_failure_scaled(self, lhr):
        issues = extract_failing_audits(lhr["audits"], lhr["categories"], Category.BEST_PRACTICES, "lighthouse")
        assert issues[0].score == 60
        assert issues[0].severity == Severity.MEDIUM

    def test_empty_report(self):
        assert metrics_from_lhr({}, LighthouseProvider()) == []
