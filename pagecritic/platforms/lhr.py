"""Normalization of Lighthouse reports (LHR) into shared metrics.

Both the local Lighthouse service and PageSpeed Insights return a Lighthouse
report, so they share this mapping. Only the ``platform`` tag differs.
"""

from typing import Any, Dict, List, TYPE_CHECKING

from .types import (
    Category,
    Metric,
    SCORED_CATEGORIES,
    round_half_up,
    severity_from_savings,
    severity_from_score,
)

if TYPE_CHECKING:
    from .base_provider import BaseProvider

# Web Vital id -> Lighthouse audit key
LHR_VITAL_AUDITS: Dict[str, str] = {
    "lcp": "largest-contentful-paint",
    "fid": "max-potential-fid",
    "cls": "cumulative-layout-shift",
    "tti": "interactive",
    "si": "speed-index",
    "inp": "interaction-to-next-paint",
}

# Cap on opportunities and on failing audits per category
MAX_AUDITS_PER_GROUP = 10

# Categories whose failing audits are reported as individual issues
ISSUE_CATEGORIES = (Category.ACCESSIBILITY, Category.SEO, Category.BEST_PRACTICES)


def extract_web_vitals(audits: Dict[str, Any], provider: "BaseProvider") -> List[Metric]:
    metrics = []
    for vital_id, audit_key in LHR_VITAL_AUDITS.items():
        audit = audits.get(audit_key) or {}
        value = audit.get("numericValue")
        if value is not None:
            metrics.append(provider.web_vital_metric(vital_id, value))
    return metrics


def extract_category_scores(categories: Dict[str, Any], provider: "BaseProvider") -> List[Metric]:
    metrics = []
    for category in SCORED_CATEGORIES:
        data = categories.get(category.value) or {}
        score = data.get("score")
        if score is not None:
            metrics.append(provider.category_score_metric(category, round_half_up(score * 100)))
    return metrics


def extract_opportunities(audits: Dict[str, Any], platform: str) -> List[Metric]:
    """Opportunity audits with positive savings, largest savings first."""
    candidates = []
    for audit_id, audit in audits.items():
        details = audit.get("details") or {}
        savings = details.get("overallSavingsMs")
        if details.get("type") == "opportunity" and savings is not None and savings > 0:
            candidates.append((audit_id, audit, savings))

    candidates.sort(key=lambda c: c[2], reverse=True)

    return [
        Metric(
            id=audit.get("id", audit_id),
            title=audit.get("title", audit_id),
            category=Category.PERFORMANCE,
            platform=platform,
            value=savings,
            description=audit.get("description"),
            unit="ms",
            severity=severity_from_savings(savings),
        )
        for audit_id, audit, savings in candidates[:MAX_AUDITS_PER_GROUP]
    ]


def extract_failing_audits(
    audits: Dict[str, Any],
    categories: Dict[str, Any],
    category: Category,
    platform: str,
) -> List[Metric]:
    """
    Audits referenced by ``category`` that did not pass.

    Audits with a null score (manual, informative, not applicable) are skipped.
    The 0-1 audit score drives severity; the metric carries it on the 0-100 scale.
    """
    refs = (categories.get(category.value) or {}).get("auditRefs") or []
    metrics = []
    for ref in refs:
        audit = audits.get(ref.get("id"))
        if not audit:
            continue
        score = audit.get("score")
        if score is None or score == 1:
            continue
        metrics.append(Metric(
            id=audit.get("id", ref.get("id")),
            title=audit.get("title", ref.get("id")),
            category=category,
            platform=platform,
            score=round_half_up(score * 100),
            description=audit.get("description"),
            severity=severity_from_score(score),
        ))
        if len(metrics) >= MAX_AUDITS_PER_GROUP:
            break
    return metrics


def metrics_from_lhr(lhr: Dict[str, Any], provider: "BaseProvider") -> List[Metric]:
    """
    Map a Lighthouse report onto the shared metric schema.

    Args:
        lhr: Lighthouse result JSON (``audits`` and ``categories`` maps)
        provider: Adapter whose platform tag the metrics carry

    Returns:
        Web Vitals, category scores, opportunities and failing audits
    """
    audits = lhr.get("audits") or {}
    categories = lhr.get("categories") or {}

    metrics: List[Metric] = []
    metrics.extend(extract_web_vitals(audits, provider))
    metrics.extend(extract_category_scores(categories, provider))
    metrics.extend(extract_opportunities(audits, provider.platform))
    for category in ISSUE_CATEGORIES:
        metrics.extend(extract_failing_audits(audits, categories, category, provider.platform))
    return metrics
