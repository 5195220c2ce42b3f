"""
CSV and JSON export of an analysis report.

The CSV is a stack of titled sections, each a small table written by pandas,
separated by blank lines.
"""

import io
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from pagecritic.analyze import AnalysisReport

logger = logging.getLogger(__name__)

REPORT_TITLE = "Landing Page Critic - Performance Analysis Report"


def _table(title: str, rows: List[Dict[str, Any]], columns: List[str]) -> str:
    buf = io.StringIO()
    buf.write(f"{title}\n")
    pd.DataFrame(rows, columns=columns).to_csv(buf, index=False, lineterminator="\n")
    return buf.getvalue()


def _issue_rows(items) -> List[Dict[str, Any]]:
    return [
        {"Title": i.title, "Description": i.description, "Score": "" if i.score is None else i.score}
        for i in items
    ]


def export_csv(
    report: AnalysisReport,
    insights: Optional[Sequence[Any]] = None,
    path: Optional[Path] = None,
) -> str:
    """
    Render ``report`` as a sectioned CSV document.

    Args:
        report: Output of analyze_url()
        insights: Optional AIInsight records to append
        path: Also write the document here when given

    Returns:
        CSV text
    """
    view = report.view
    header = "\n".join([
        REPORT_TITLE,
        f"URL: {view.url}",
        f"Analyzed: {view.analyzed_at}",
        f"Platforms: {', '.join(view.platforms)}",
    ]) + "\n"
    sections = [header]

    sections.append(_table(
        "Category Scores",
        [{"Category": c.title, "Score": c.score} for c in view.categories],
        ["Category", "Score"],
    ))
    sections.append(_table(
        "Web Vitals",
        [
            {"Metric": v.id.upper(), "Value": v.value, "Unit": "" if v.id == "cls" else "ms"}
            for v in view.web_vitals
        ],
        ["Metric", "Value", "Unit"],
    ))

    if view.opportunities:
        sections.append(_table(
            "Performance Opportunities",
            [
                {"Title": o.title, "Description": o.description, "Potential Savings": o.savings_ms, "Unit": o.unit or ""}
                for o in view.opportunities
            ],
            ["Title", "Description", "Potential Savings", "Unit"],
        ))
    if view.recommendations:
        sections.append(_table(
            "Recommendations",
            [{"Title": r.title, "Description": r.description} for r in view.recommendations],
            ["Title", "Description"],
        ))
    if view.accessibility:
        sections.append(_table("Accessibility Issues", _issue_rows(view.accessibility), ["Title", "Description", "Score"]))
    if view.best_practices:
        sections.append(_table("Best Practices Issues", _issue_rows(view.best_practices), ["Title", "Description", "Score"]))

    if insights:
        sections.append(_table(
            "AI Insights",
            [
                {
                    "Title": i.title,
                    "Description": i.description,
                    "Severity": i.severity,
                    "Category": i.category,
                    "Priority": i.priority,
                    "Status": i.status,
                }
                for i in insights
            ],
            ["Title", "Description", "Severity", "Category", "Priority", "Status"],
        ))

    document = "\n".join(sections)
    if path is not None:
        _write(path, document)
    return document


def export_json(
    report: AnalysisReport,
    insights: Optional[Sequence[Any]] = None,
    path: Optional[Path] = None,
    include_raw: bool = False,
) -> str:
    """
    Render ``report`` as JSON: the view fields plus consolidated detail.

    ``include_raw`` embeds each provider's raw payload, which can be large.
    """
    doc = report.to_dict()
    doc["consolidated"] = report.consolidated.to_dict()
    doc["platformData"] = [r.to_dict(include_raw=include_raw) for r in report.provider_results]
    if insights:
        doc["aiInsights"] = [i.to_dict() for i in insights]

    document = json.dumps(doc, indent=2, default=str)
    if path is not None:
        _write(path, document)
    return document


def _write(path: Path, document: str):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(document)
    logger.info(f"Wrote {path}")
