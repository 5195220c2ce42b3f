"""
Plain-text summary of an analysis for an LLM prompt.
"""

from typing import Any, Dict, List, Optional, Sequence

from pagecritic.view import LegacyViewModel

# Items listed per section
MAX_SECTION_ITEMS = 5
MAX_HISTORY_ENTRIES = 5


def _signed(delta: float) -> str:
    return f"{'+' if delta > 0 else ''}{delta:.1f}%"


def _format_history(site_history: Sequence[Dict[str, Any]]) -> List[str]:
    lines = [f"Performance History (Last {len(site_history)} analyses):"]
    recent = list(site_history)[-MAX_HISTORY_ENTRIES:]
    for entry in recent:
        lines.append(
            f"- {entry.get('date', 'unknown')}: "
            f"Performance {entry.get('performance', 0)}%, "
            f"Accessibility {entry.get('accessibility', 0)}%, "
            f"SEO {entry.get('seo', 0)}%, "
            f"Best Practices {entry.get('best_practices', 0)}%"
        )

    if len(recent) >= 2:
        first, last = recent[0], recent[-1]
        trends = [
            f"{label} {_signed(last.get(key, 0) - first.get(key, 0))}"
            for label, key in (("Performance", "performance"), ("Accessibility", "accessibility"), ("SEO", "seo"))
        ]
        lines.append("Trends: " + ", ".join(trends))
    return lines


def _format_previous(previous_insights: Sequence[Any]) -> List[str]:
    by_status: Dict[str, list] = {"applied": [], "ignored": [], "pending": []}
    for insight in previous_insights:
        by_status.setdefault(insight.status, []).append(insight)

    lines = [
        f"Previous AI Insights ({len(previous_insights)} total):",
        f"- Applied: {len(by_status['applied'])}, "
        f"Ignored: {len(by_status['ignored'])}, "
        f"Pending: {len(by_status['pending'])}",
    ]
    if by_status["applied"]:
        lines.append("Recently Applied Insights:")
        for insight in by_status["applied"][-3:]:
            lines.append(f"- {insight.title} ({insight.category}, Priority: {insight.priority})")
    return lines


def format_metrics_for_ai(
    view: LegacyViewModel,
    platforms: Optional[Sequence[str]] = None,
    site_history: Optional[Sequence[Dict[str, Any]]] = None,
    previous_insights: Optional[Sequence[Any]] = None,
) -> str:
    """
    Build the analysis summary the insight prompt is wrapped around.

    Args:
        view: Projected analysis
        platforms: Contributing providers (default: ``view.platforms``)
        site_history: Earlier analyses of the same site, oldest first, as
            dicts with ``date``, ``performance``, ``accessibility``, ``seo``
            and ``best_practices``
        previous_insights: Earlier AIInsight records for the site

    Returns:
        Multi-section plain-text summary
    """
    platforms = list(view.platforms if platforms is None else platforms)
    sections: List[List[str]] = [[f"Website Analysis for: {view.url}"]]

    if platforms:
        sections.append([
            f"Data Sources: {', '.join(platforms)}",
            f"Multi-platform analysis available: {'Yes' if len(platforms) > 1 else 'No'}",
        ])

    if site_history:
        sections.append(_format_history(site_history))

    if previous_insights:
        sections.append(_format_previous(previous_insights))

    sections.append(["Current Analysis Results:"])

    if view.web_vitals:
        lines = ["Web Vitals:"]
        for vital in view.web_vitals:
            unit = "" if vital.id == "cls" else "ms"
            lines.append(f"- {vital.title}: {vital.value}{unit}")
        sections.append(lines)

    if view.categories:
        sections.append(["Category Scores:"] + [f"- {c.title}: {c.score}%" for c in view.categories])

    for heading, items in (
        ("Performance Opportunities", view.opportunities),
        ("Recommendations", view.recommendations),
        ("Accessibility Issues", view.accessibility),
        ("Best Practices", view.best_practices),
    ):
        if items:
            sections.append(
                [f"{heading}:"] + [f"- {i.title}: {i.description}" for i in items[:MAX_SECTION_ITEMS]]
            )

    return "\n\n".join("\n".join(lines) for lines in sections) + "\n"
