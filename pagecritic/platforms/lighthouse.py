"""Lighthouse provider backed by a local Lighthouse HTTP service.

The service runs headless Chrome and answers ``GET /lighthouse?url=...`` with
the raw Lighthouse report JSON, or ``{"error": "..."}`` with a non-2xx status.
"""

import logging
from typing import Any, Dict, List, Tuple

import requests

from pagecritic.config.platforms import PlatformConfig
from .base_provider import BaseProvider, ProviderError, build_session
from .lhr import metrics_from_lhr
from .types import Metric

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://localhost:3001"

_session = build_session()


class LighthouseProvider(BaseProvider):
    """Run Lighthouse through the local service and normalize the report."""

    platform = "lighthouse"
    display_name = "Lighthouse"
    requires_api_key = False

    def _fetch_impl(self, url: str, config: PlatformConfig) -> Tuple[List[Metric], Any]:
        lhr = self._fetch_report(url, config)
        if not lhr:
            raise ProviderError(self.platform, "No Lighthouse results available")
        return metrics_from_lhr(lhr, self), lhr

    def _fetch_report(self, url: str, config: PlatformConfig) -> Dict[str, Any]:
        service_url = (config.endpoint or DEFAULT_ENDPOINT).rstrip("/") + "/lighthouse"
        try:
            response = _session.get(service_url, params={"url": url}, timeout=config.timeout)
        except requests.RequestException as e:
            raise ProviderError(self.platform, f"Unable to fetch Lighthouse results: {e}", e) from e

        if not response.ok:
            message = f"Lighthouse service failed with status {response.status_code}"
            try:
                detail = response.json().get("error")
            except (ValueError, AttributeError):
                detail = None
            if detail:
                message += f": {detail}"
            raise ProviderError(self.platform, message)

        return self.decode_json(response, "Lighthouse service")
