"""
Consolidation of provider results into a single weighted result.

Category scores are blended across providers by weighted average. Web Vitals
are never blended: each vital is taken from the highest-priority provider
that measured it.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from pagecritic.platforms.registry import PLATFORM_PRIORITY
from pagecritic.platforms.types import (
    Category,
    ConsolidatedResult,
    Metric,
    ProviderResult,
    SCORED_CATEGORIES,
    WEB_VITAL_IDS,
    round_half_up,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

PLATFORM_WEIGHTS: Dict[str, float] = {
    "lighthouse": 0.5,
    "pagespeed": 0.3,
    "webpagetest": 0.2,
}

DEFAULT_PLATFORM_WEIGHT = 0.1


def get_platform_weight(platform: str) -> float:
    return PLATFORM_WEIGHTS.get(platform, DEFAULT_PLATFORM_WEIGHT)


def partition_metrics(metrics: Iterable[Metric]) -> Dict[str, List[Metric]]:
    """Bucket metrics by category; all five buckets are always present."""
    categories: Dict[str, List[Metric]] = {c.value: [] for c in Category}
    for metric in metrics:
        categories[metric.category.value].append(metric)
    return categories


def weighted_score(metrics: Iterable[Metric]) -> int:
    """
    Weighted average of the scored metrics, rounded half up.

    Metrics without a score are ignored. Returns 0 when nothing is scored.
    """
    weighted_sum = 0.0
    total_weight = 0.0
    for metric in metrics:
        if metric.score is None:
            continue
        weight = get_platform_weight(metric.platform)
        weighted_sum += metric.score * weight
        total_weight += weight

    if total_weight == 0:
        return 0
    return round_half_up(weighted_sum / total_weight)


def calculate_category_scores(categories: Dict[str, List[Metric]]) -> Dict[str, int]:
    return {
        category.value: weighted_score(categories.get(category.value, []))
        for category in SCORED_CATEGORIES
    }


def select_web_vitals(
    metrics: Iterable[Metric],
    priority: Sequence[str] = PLATFORM_PRIORITY,
) -> Dict[str, float]:
    """
    Pick one value per vital from the first provider in ``priority`` that has it.

    Vitals nobody measured are left out of the result.
    """
    by_platform: Dict[str, Dict[str, float]] = {}
    for metric in metrics:
        if metric.category != Category.WEB_VITALS or metric.value is None:
            continue
        # First occurrence wins within a platform
        by_platform.setdefault(metric.platform, {}).setdefault(metric.id, metric.value)

    vitals: Dict[str, float] = {}
    for vital_id in WEB_VITAL_IDS:
        for platform in priority:
            value = by_platform.get(platform, {}).get(vital_id)
            if value is not None:
                vitals[vital_id] = value
                break
    return vitals


def consolidate(results: Sequence[ProviderResult], now: Optional[str] = None) -> ConsolidatedResult:
    """
    Merge provider results into one ConsolidatedResult.

    Errored results are dropped whole. Accepts an empty list, in which case
    every score is 0 and no vital is set.

    Args:
        results: Provider results from one fetch batch
        now: Consolidation timestamp (default: current UTC time)

    Returns:
        ConsolidatedResult with weighted scores and selected Web Vitals
    """
    survivors = [r for r in results if r.ok]
    if len(survivors) < len(results):
        logger.info(f"Ignoring {len(results) - len(survivors)} errored provider result(s)")

    platforms: List[str] = []
    metrics: List[Metric] = []
    for result in survivors:
        platforms.append(result.platform)
        metrics.extend(result.metrics)

    categories = partition_metrics(metrics)

    return ConsolidatedResult(
        url=survivors[0].url if survivors else (results[0].url if results else ""),
        timestamp=now or utc_now_iso(),
        platforms=platforms,
        metrics=metrics,
        categories=categories,
        scores=calculate_category_scores(categories),
        web_vitals=select_web_vitals(categories[Category.WEB_VITALS.value]),
    )
