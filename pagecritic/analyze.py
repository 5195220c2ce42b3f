"""
End-to-end analysis of one URL: fetch, consolidate, project.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from pagecritic.config.platforms import PlatformsConfig, load_platforms_config
from pagecritic.consolidation import consolidate
from pagecritic.platforms.base_provider import BaseProvider
from pagecritic.platforms.health import HealthTracker
from pagecritic.platforms.orchestrator import FALLBACK_PLATFORM, fetch_all_sync
from pagecritic.platforms.types import ConsolidatedResult, ProviderResult
from pagecritic.view import LegacyViewModel, to_view_model

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Using fallback data due to platform issues"
WEB_VITALS_MESSAGE = "Web Vitals data could not be collected from any platform"


class NoPlatformDataError(Exception):
    """Raised when every scheduled provider failed."""

    def __init__(self, url: str, errors: Dict[str, str]):
        self.url = url
        self.errors = errors
        super().__init__("No performance data available from any platform")


@dataclass
class AnalysisReport:
    """Result of analyze_url."""
    consolidated: ConsolidatedResult
    view: LegacyViewModel
    provider_results: List[ProviderResult] = field(default_factory=list)
    fallback: bool = False
    web_vitals_warning: bool = False

    def to_dict(self) -> Dict[str, Any]:
        d = self.view.to_dict()
        d["scores"] = dict(self.consolidated.scores)
        d["errors"] = {r.platform: r.error for r in self.provider_results if not r.ok}
        if self.fallback:
            d["fallback"] = True
            d["message"] = FALLBACK_MESSAGE
        if self.web_vitals_warning:
            d["webVitalsWarning"] = True
            d["webVitalsMessage"] = WEB_VITALS_MESSAGE
        return d


def analyze_url(
    url: str,
    config: Optional[PlatformsConfig] = None,
    providers: Optional[Mapping[str, BaseProvider]] = None,
    tracker: Optional[HealthTracker] = None,
) -> AnalysisReport:
    """
    Run every enabled provider against ``url`` and consolidate the results.

    Args:
        url: Page to audit (already validated by the caller)
        config: Provider configuration (default: load_platforms_config())
        providers: Provider registry override
        tracker: Optional health tracker updated with the batch outcome

    Returns:
        AnalysisReport

    Raises:
        NoPlatformDataError: If no provider succeeded and no fallback was used
    """
    config = config or load_platforms_config()
    logger.info(f"Analyzing {url} with {config.enabled_names() or 'no enabled platforms'}")

    results = fetch_all_sync(url, config, providers=providers, tracker=tracker)

    fallback = any(r.platform == FALLBACK_PLATFORM for r in results)
    if not any(r.ok for r in results):
        errors = {r.platform: r.error for r in results}
        logger.error(f"No successful platforms for {url}: {errors}")
        raise NoPlatformDataError(url, errors)

    consolidated = consolidate(results)
    view = to_view_model(consolidated)

    report = AnalysisReport(
        consolidated=consolidated,
        view=view,
        provider_results=results,
        fallback=fallback,
        web_vitals_warning=not view.web_vitals,
    )
    if report.web_vitals_warning:
        logger.warning(f"No Web Vitals collected for {url}")
    return report
