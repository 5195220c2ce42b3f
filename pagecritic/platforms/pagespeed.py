"""Google PageSpeed Insights (PSI v5) provider.

PSI runs Lighthouse on Google infrastructure and embeds the report under
``lighthouseResult``. An API key is required.
"""

import logging
from typing import Any, List, Tuple

import requests

from pagecritic.config.platforms import PlatformConfig
from .base_provider import BaseProvider, ProviderError, build_session
from .lhr import metrics_from_lhr
from .types import Metric

logger = logging.getLogger(__name__)

PSI_ENDPOINT = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
PSI_CATEGORIES = ["PERFORMANCE", "ACCESSIBILITY", "BEST_PRACTICES", "SEO"]

_session = build_session()


class PageSpeedProvider(BaseProvider):
    """Fetch a PageSpeed Insights run and normalize its Lighthouse report."""

    platform = "pagespeed"
    display_name = "PageSpeed Insights"
    requires_api_key = True

    def __init__(self, strategy: str = "mobile"):
        self.strategy = strategy

    def _fetch_impl(self, url: str, config: PlatformConfig) -> Tuple[List[Metric], Any]:
        if not config.api_key:
            raise ProviderError(self.platform, "PageSpeed Insights API key is required")

        params = {
            "url": url,
            "key": config.api_key,
            "strategy": self.strategy,
            "category": PSI_CATEGORIES,
        }
        try:
            response = _session.get(config.endpoint or PSI_ENDPOINT, params=params, timeout=config.timeout)
        except requests.RequestException as e:
            raise ProviderError(self.platform, f"PageSpeed API request failed: {e}", e) from e

        if not response.ok:
            raise ProviderError(
                self.platform,
                f"PageSpeed API error: {response.status_code} {response.reason}",
            )

        data = self.decode_json(response, "PageSpeed API")
        lhr = data.get("lighthouseResult")
        if not isinstance(lhr, dict):
            raise ProviderError(self.platform, "PageSpeed response has no lighthouseResult")

        return metrics_from_lhr(lhr, self), data
