"""Shared metric schema for all provider adapters and the consolidation engine."""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Category(str, Enum):
    PERFORMANCE = "performance"
    ACCESSIBILITY = "accessibility"
    SEO = "seo"
    BEST_PRACTICES = "best-practices"
    WEB_VITALS = "web-vitals"


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Categories that receive a weighted composite score (web-vitals are selected, not averaged)
SCORED_CATEGORIES: Tuple[Category, ...] = (
    Category.PERFORMANCE,
    Category.ACCESSIBILITY,
    Category.SEO,
    Category.BEST_PRACTICES,
)

CATEGORY_TITLES: Dict[str, str] = {
    "performance": "Performance",
    "accessibility": "Accessibility",
    "seo": "SEO",
    "best-practices": "Best Practices",
    "web-vitals": "Web Vitals",
}

WEB_VITAL_IDS: Tuple[str, ...] = ("lcp", "fid", "cls", "tti", "si", "inp")

WEB_VITAL_TITLES: Dict[str, str] = {
    "lcp": "Largest Contentful Paint",
    "fid": "First Input Delay",
    "cls": "Cumulative Layout Shift",
    "tti": "Time to Interactive",
    "si": "Speed Index",
    "inp": "Input Latency",
}

# Approximate "good" thresholds, shared by every provider
WEB_VITAL_TARGETS: Dict[str, float] = {
    "lcp": 2500,
    "fid": 100,
    "cls": 0.1,
    "tti": 3800,
    "si": 3400,
    "inp": 200,
}


def get_web_vital_target(vital_id: str) -> float:
    return WEB_VITAL_TARGETS.get(vital_id, 0)


def severity_from_score(score: float) -> Severity:
    """Severity for a 0-1 audit or category score."""
    if score < 0.5:
        return Severity.HIGH
    if score < 0.9:
        return Severity.MEDIUM
    return Severity.LOW


def severity_from_savings(savings_ms: float) -> Severity:
    """Severity for an opportunity's potential savings in milliseconds."""
    if savings_ms > 1000:
        return Severity.HIGH
    if savings_ms > 500:
        return Severity.MEDIUM
    return Severity.LOW


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def round_half_up(x: float) -> int:
    """Round to the nearest integer with .5 going up (round() uses banker's rounding)."""
    return int(math.floor(x + 0.5))


@dataclass(frozen=True)
class Metric:
    """One normalized measurement produced by a provider adapter.

    Attributes:
        id: Stable identifier (e.g. ``lcp``, ``performance-score`` or an audit id).
        title: Human-readable label.
        category: Bucket the metric belongs to.
        platform: Originating provider name.
        value: Raw measurement (e.g. milliseconds), if any.
        score: Normalized 0-100 score, if any.
        description: Provider text explaining the metric or issue.
        severity: Derived severity, where applicable.
        unit: Unit of ``value`` (``ms``, ``%``, ``bytes``...).
        target: Reference threshold.
        actual: Measured value compared against ``target``.
    """

    id: str
    title: str
    category: Category
    platform: str
    value: Optional[float] = None
    score: Optional[float] = None
    description: Optional[str] = None
    severity: Optional[Severity] = None
    unit: Optional[str] = None
    target: Optional[float] = None
    actual: Optional[float] = None

    def __post_init__(self):
        # Accept plain strings such as "performance"
        object.__setattr__(self, "category", Category(self.category))
        if self.severity is not None:
            object.__setattr__(self, "severity", Severity(self.severity))

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "id": self.id,
            "title": self.title,
            "category": self.category.value,
            "platform": self.platform,
            "value": self.value,
            "score": self.score,
            "description": self.description,
            "severity": self.severity.value if self.severity else None,
            "unit": self.unit,
            "target": self.target,
            "actual": self.actual,
        }
        return {k: v for k, v in d.items() if v is not None}


def category_score_metric(platform: str, category: Category, score: float) -> Metric:
    """Composite score metric for a category, ``score`` on the 0-100 scale."""
    return Metric(
        id=f"{category.value}-score",
        title=f"{CATEGORY_TITLES[category.value]} Score",
        category=category,
        platform=platform,
        score=score,
        unit="%",
        actual=score,
        target=100,
    )


@dataclass(frozen=True)
class ProviderResult:
    """Outcome of one adapter fetch for one URL.

    ``error`` and ``metrics`` are mutually exclusive in effect: when ``error``
    is set the consolidation engine ignores the metrics entirely.
    """

    platform: str
    url: str
    timestamp: str
    metrics: Tuple[Metric, ...] = ()
    error: Optional[str] = None
    raw_data: Any = field(default=None, repr=False, compare=False)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self, include_raw: bool = False) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "platform": self.platform,
            "url": self.url,
            "timestamp": self.timestamp,
            "metrics": [m.to_dict() for m in self.metrics],
        }
        if self.error is not None:
            d["error"] = self.error
        if include_raw and self.raw_data is not None:
            d["rawData"] = self.raw_data
        return d


@dataclass
class ConsolidatedResult:
    """Merged view of all successful provider results for one URL."""

    url: str
    timestamp: str
    platforms: List[str] = field(default_factory=list)
    metrics: List[Metric] = field(default_factory=list)
    categories: Dict[str, List[Metric]] = field(default_factory=dict)
    scores: Dict[str, int] = field(default_factory=dict)
    web_vitals: Dict[str, float] = field(default_factory=dict)  # only measured vitals

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "timestamp": self.timestamp,
            "platforms": list(self.platforms),
            "metrics": [m.to_dict() for m in self.metrics],
            "categories": {
                name: [m.to_dict() for m in metrics]
                for name, metrics in self.categories.items()
            },
            "scores": dict(self.scores),
            "webVitals": dict(self.web_vitals),
        }
