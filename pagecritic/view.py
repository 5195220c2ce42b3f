"""
Flat view of a ConsolidatedResult for dashboards, exports and the insight formatter.

Pure projection: no score is recomputed here.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pagecritic.platforms.types import (
    CATEGORY_TITLES,
    Category,
    ConsolidatedResult,
    WEB_VITAL_IDS,
    WEB_VITAL_TITLES,
)

MAX_VIEW_ITEMS = 10


@dataclass
class CategoryView:
    id: str
    title: str
    score: int


@dataclass
class WebVitalView:
    id: str
    title: str
    value: float


@dataclass
class OpportunityView:
    id: str
    title: str
    description: str
    savings_ms: float
    unit: Optional[str] = None


@dataclass
class IssueView:
    id: str
    title: str
    description: str
    score: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {"id": self.id, "title": self.title, "description": self.description}
        if self.score is not None:
            d["score"] = self.score
        return d


@dataclass
class LegacyViewModel:
    """Display-ready projection of one consolidated analysis."""
    url: str
    analyzed_at: str
    platforms: List[str] = field(default_factory=list)
    categories: List[CategoryView] = field(default_factory=list)
    web_vitals: List[WebVitalView] = field(default_factory=list)
    opportunities: List[OpportunityView] = field(default_factory=list)
    recommendations: List[IssueView] = field(default_factory=list)
    accessibility: List[IssueView] = field(default_factory=list)
    best_practices: List[IssueView] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "analyzedAt": self.analyzed_at,
            "platforms": list(self.platforms),
            "categories": [vars(c).copy() for c in self.categories],
            "webVitals": [vars(v).copy() for v in self.web_vitals],
            "opportunities": [
                {"id": o.id, "title": o.title, "description": o.description, "savingsMs": o.savings_ms, "unit": o.unit}
                for o in self.opportunities
            ],
            "recommendations": [i.to_dict() for i in self.recommendations],
            "accessibility": [i.to_dict() for i in self.accessibility],
            "bestPractices": [i.to_dict() for i in self.best_practices],
        }


def _issues(consolidated: ConsolidatedResult, category: Category, fallback: str) -> List[IssueView]:
    metrics = consolidated.categories.get(category.value, [])
    return [
        IssueView(id=m.id, title=m.title, description=m.description or f"{fallback}: {m.title}",
                  score=m.score)
        for m in metrics[:MAX_VIEW_ITEMS]
    ]


def to_view_model(consolidated: ConsolidatedResult, analyzed_at: Optional[str] = None) -> LegacyViewModel:
    """
    Reshape a consolidated result into the flat view.

    Args:
        consolidated: Output of consolidate()
        analyzed_at: Override for the analysis timestamp

    Returns:
        LegacyViewModel with vitals in fixed id order (unmeasured ones
        omitted), performance findings (value plus severity) as
        opportunities sorted by magnitude, and every list capped at
        MAX_VIEW_ITEMS
    """
    categories = [
        CategoryView(id=name, title=CATEGORY_TITLES.get(name, name.capitalize()), score=score)
        for name, score in consolidated.scores.items()
    ]

    web_vitals = [
        WebVitalView(id=vital_id, title=WEB_VITAL_TITLES[vital_id], value=consolidated.web_vitals[vital_id])
        for vital_id in WEB_VITAL_IDS
        if consolidated.web_vitals.get(vital_id) is not None
    ]

    performance = consolidated.categories.get(Category.PERFORMANCE.value, [])
    # Savings findings carry a severity; raw timings and byte or request totals do not
    with_value = sorted(
        (m for m in performance if m.value is not None and m.severity is not None),
        key=lambda m: abs(m.value),
        reverse=True,
    )
    opportunities = [
        OpportunityView(
            id=m.id,
            title=m.title,
            description=m.description or f"Performance metric: {m.title}",
            savings_ms=m.value,
            unit=m.unit,
        )
        for m in with_value[:MAX_VIEW_ITEMS]
    ]

    return LegacyViewModel(
        url=consolidated.url,
        analyzed_at=analyzed_at or consolidated.timestamp,
        platforms=list(consolidated.platforms),
        categories=categories,
        web_vitals=web_vitals,
        opportunities=opportunities,
        recommendations=_issues(consolidated, Category.PERFORMANCE, "Performance recommendation"),
        accessibility=_issues(consolidated, Category.ACCESSIBILITY, "Accessibility issue"),
        best_practices=_issues(consolidated, Category.BEST_PRACTICES, "Best practice"),
    )
