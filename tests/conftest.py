"""Shared fixtures: Lighthouse report builders, metric factories, configs."""

from typing import Any, Dict, Optional

import pytest

from pagecritic.config.platforms import PlatformConfig, PlatformsConfig
from pagecritic.platforms.types import Category, Metric, ProviderResult


def build_lhr(
    scores: Optional[Dict[str, float]] = None,
    vitals: Optional[Dict[str, float]] = None,
) -> Dict[str, Any]:
    """Minimal Lighthouse report with categories, vitals, one opportunity and failing audits."""
    scores = scores if scores is not None else {
        "performance": 0.85,
        "accessibility": 0.92,
        "seo": 0.9,
        "best-practices": 0.75,
    }
    vitals = vitals if vitals is not None else {
        "largest-contentful-paint": 2100.5,
        "cumulative-layout-shift": 0.05,
        "interactive": 3200,
    }

    audits: Dict[str, Any] = {
        key: {"id": key, "title": key, "numericValue": value}
        for key, value in vitals.items()
    }
    audits.update({
        "render-blocking-resources": {
            "id": "render-blocking-resources",
            "title": "Eliminate render-blocking resources",
            "description": "Resources are blocking the first paint of your page.",
            "score": 0.4,
            "details": {"type": "opportunity", "overallSavingsMs": 1200},
        },
        "unused-javascript": {
            "id": "unused-javascript",
            "title": "Reduce unused JavaScript",
            "description": "Reduce unused JavaScript.",
            "score": 0.7,
            "details": {"type": "opportunity", "overallSavingsMs": 600},
        },
        "uses-long-cache-ttl": {
            "id": "uses-long-cache-ttl",
            "title": "Serve static assets with an efficient cache policy",
            "score": 0.5,
            "details": {"type": "table"},
        },
        "color-contrast": {
            "id": "color-contrast",
            "title": "Background and foreground colors do not have a sufficient contrast ratio.",
            "description": "Low-contrast text is difficult to read.",
            "score": 0,
        },
        "image-alt": {
            "id": "image-alt",
            "title": "Image elements have [alt] attributes",
            "score": 1,
        },
        "aria-allowed-attr": {
            "id": "aria-allowed-attr",
            "title": "[aria-*] attributes match their roles",
            "score": None,
        },
        "errors-in-console": {
            "id": "errors-in-console",
            "title": "Browser errors were logged to the console",
            "description": "Errors logged to the console indicate unresolved problems.",
            "score": 0.6,
        },
    })

    categories = {
        name: {"id": name, "score": score, "auditRefs": []}
        for name, score in scores.items()
    }
    if "accessibility" in categories:
        categories["accessibility"]["auditRefs"] = [
            {"id": "color-contrast"}, {"id": "image-alt"}, {"id": "aria-allowed-attr"}, {"id": "missing-audit"},
        ]
    if "best-practices" in categories:
        categories["best-practices"]["auditRefs"] = [{"id": "errors-in-console"}]

    return {"audits": audits, "categories": categories}


def score_metric(platform: str, category: Category, score: float) -> Metric:
    return Metric(
        id=f"{category.value}-score",
        title=f"{category.value} score",
        category=category,
        platform=platform,
        score=score,
    )


def vital_metric(platform: str, vital_id: str, value: Optional[float]) -> Metric:
    return Metric(
        id=vital_id,
        title=vital_id.upper(),
        category=Category.WEB_VITALS,
        platform=platform,
        value=value,
    )


def provider_result(platform: str, *metrics: Metric, error: Optional[str] = None,
                    url: str = "https://example.com") -> ProviderResult:
    return ProviderResult(
        platform=platform,
        url=url,
        timestamp="2026-01-01T00:00:00+00:00",
        metrics=() if error else tuple(metrics),
        error=error,
    )


@pytest.fixture
def lhr():
    return build_lhr()


@pytest.fixture
def all_enabled_config():
    return PlatformsConfig(platforms={
        "lighthouse": PlatformConfig(enabled=True, endpoint="http://lh.test", timeout=5),
        "pagespeed": PlatformConfig(enabled=True, api_key="psi-key", timeout=5),
        "webpagetest": PlatformConfig(enabled=True, timeout=5, retries=2),
    })


@pytest.fixture
def all_disabled_config():
    return PlatformsConfig(platforms={
        "lighthouse": PlatformConfig(enabled=False),
        "pagespeed": PlatformConfig(enabled=False),
        "webpagetest": PlatformConfig(enabled=False),
    })
