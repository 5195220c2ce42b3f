"""WebPageTest provider.

WebPageTest queues tests, so a fetch is two phases:
1. Submit the test via ``runtest.php`` and read back the results URL.
2. Poll the results URL every POLL_INTERVAL_SECONDS, at most ``config.retries``
   times, until the first run is available.

The public instance accepts anonymous tests; an API key raises the quota.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Tuple

import requests

from pagecritic.config.platforms import PlatformConfig
from .base_provider import BaseProvider, ProviderError, build_session
from .types import Category, Metric, Severity, WEB_VITAL_IDS

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://www.webpagetest.org"
DEFAULT_LOCATION = "Dulles:Chrome"

# Request timeout (connect, read) in seconds, per HTTP call
REQUEST_TIMEOUT = (10, 30)

POLL_INTERVAL_SECONDS = 10
DEFAULT_POLL_ATTEMPTS = 30

# Waterfall entries slower than this are reported as slow resources
SLOW_RESOURCE_MS = 1000
MAX_SLOW_RESOURCES = 5

# Web Vital id -> firstView key
WPT_VITAL_KEYS: Dict[str, str] = {
    "lcp": "LargestContentfulPaint",
    "fid": "FirstInputDelay",
    "cls": "CumulativeLayoutShift",
    "tti": "TimeToInteractive",
    "si": "SpeedIndex",
    "inp": "InputLatency",
}

WPT_TIMING_METRICS: List[Tuple[str, str, str]] = [
    ("first-byte", "Time to First Byte", "TTFB"),
    ("first-paint", "First Paint", "firstPaint"),
    ("first-contentful-paint", "First Contentful Paint", "firstContentfulPaint"),
    ("dom-interactive", "DOM Interactive", "domInteractive"),
    ("dom-content-loaded", "DOM Content Loaded", "domContentLoadedEventStart"),
    ("load-event", "Load Event", "loadEventStart"),
]

WPT_RESOURCE_METRICS: List[Tuple[str, str, str]] = [
    ("total-requests", "Total Requests", "requestsFull"),
    ("total-bytes", "Total Bytes", "bytesIn"),
    ("image-requests", "Image Requests", "imageRequests"),
    ("image-bytes", "Image Bytes", "imageBytes"),
    ("script-requests", "Script Requests", "scriptRequests"),
    ("script-bytes", "Script Bytes", "scriptBytes"),
    ("css-requests", "CSS Requests", "cssRequests"),
    ("css-bytes", "CSS Bytes", "cssBytes"),
]

_session = build_session()


def estimate_performance_score(
    lcp: Optional[float],
    fid: Optional[float],
    cls: Optional[float],
) -> int:
    """
    Heuristic 0-100 performance score from Web Vitals.

    Starts at 100 and deducts 15 for "needs improvement" and 30 for "poor"
    on each of LCP (2500/4000 ms), FID (100/300 ms) and CLS (0.1/0.25).
    Missing vitals deduct nothing.
    """
    score = 100
    for value, needs_improvement, poor in ((lcp, 2500, 4000), (fid, 100, 300), (cls, 0.1, 0.25)):
        if value is None:
            continue
        if value > poor:
            score -= 30
        elif value > needs_improvement:
            score -= 15
    return max(0, score)


def _first_run(results: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not results or results.get("statusCode") != 200:
        return None
    runs = (results.get("data") or {}).get("runs") or {}
    return runs.get("1")


class WebPageTestProvider(BaseProvider):
    """Submit a WebPageTest run, poll for completion and normalize firstView."""

    platform = "webpagetest"
    display_name = "WebPageTest"
    requires_api_key = False

    def _fetch_impl(self, url: str, config: PlatformConfig) -> Tuple[List[Metric], Any]:
        endpoint = (config.endpoint or DEFAULT_ENDPOINT).rstrip("/")
        results_url = self._submit(url, endpoint, config.api_key)
        results = self._poll(results_url, config.retries or DEFAULT_POLL_ATTEMPTS)

        run = _first_run(results)
        if run is None:
            raise ProviderError(self.platform, "WebPageTest results not available after maximum attempts")

        first_view = run.get("firstView")
        if not isinstance(first_view, dict):
            raise ProviderError(self.platform, "WebPageTest run has no firstView data")

        return self.metrics_from_first_view(first_view), results

    def _submit(self, url: str, endpoint: str, api_key: Optional[str]) -> str:
        params = {
            "url": url,
            "f": "json",
            "runs": 1,
            "location": DEFAULT_LOCATION,
            "mobile": 0,
        }
        if api_key:
            params["k"] = api_key

        try:
            response = _session.get(f"{endpoint}/runtest.php", params=params, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise ProviderError(self.platform, f"WebPageTest submit failed: {e}", e) from e

        if not response.ok:
            raise ProviderError(self.platform, f"WebPageTest submit error: {response.status_code}")

        submitted = self.decode_json(response, "WebPageTest submit")
        if submitted.get("statusCode") != 200:
            raise ProviderError(self.platform, f"WebPageTest error: {submitted.get('statusText', 'unknown')}")

        data = submitted.get("data") or {}
        results_url = data.get("jsonUrl")
        if not results_url:
            raise ProviderError(self.platform, "WebPageTest submit response has no jsonUrl")

        logger.info(f"WebPageTest test {data.get('testId')} submitted for {url}")
        return results_url

    def _poll(self, results_url: str, max_attempts: int) -> Optional[Dict[str, Any]]:
        """Poll until the first run is present; returns the last payload seen."""
        results = None
        for attempt in range(1, max_attempts + 1):
            time.sleep(POLL_INTERVAL_SECONDS)
            try:
                response = _session.get(results_url, timeout=REQUEST_TIMEOUT)
                if response.ok:
                    results = response.json()
                    if _first_run(results) is not None:
                        return results
            except (requests.RequestException, ValueError) as e:
                logger.warning(f"WebPageTest poll attempt {attempt}/{max_attempts} failed: {e}")
        return results

    def metrics_from_first_view(self, first_view: Dict[str, Any]) -> List[Metric]:
        metrics: List[Metric] = []

        for vital_id in WEB_VITAL_IDS:
            value = first_view.get(WPT_VITAL_KEYS[vital_id])
            if value is not None:
                metrics.append(self.web_vital_metric(vital_id, value))

        for metric_id, title, key in WPT_TIMING_METRICS:
            value = first_view.get(key)
            if value is not None:
                metrics.append(Metric(
                    id=metric_id,
                    title=title,
                    category=Category.PERFORMANCE,
                    platform=self.platform,
                    value=value,
                    unit="ms",
                    actual=value,
                ))

        for metric_id, title, key in WPT_RESOURCE_METRICS:
            value = first_view.get(key)
            if value is not None:
                metrics.append(Metric(
                    id=metric_id,
                    title=title,
                    category=Category.PERFORMANCE,
                    platform=self.platform,
                    value=value,
                    unit="bytes" if key.endswith("Bytes") or key == "bytesIn" else "count",
                    actual=value,
                ))

        metrics.extend(self.slow_resources(first_view))

        score = estimate_performance_score(
            first_view.get("LargestContentfulPaint"),
            first_view.get("FirstInputDelay"),
            first_view.get("CumulativeLayoutShift"),
        )
        metrics.append(self.category_score_metric(Category.PERFORMANCE, score))
        return metrics

    def slow_resources(self, first_view: Dict[str, Any]) -> List[Metric]:
        waterfall = (first_view.get("details") or {}).get("waterfall") or []
        slow = [r for r in waterfall if (r.get("time") or 0) > SLOW_RESOURCE_MS]

        metrics = []
        for resource in slow[:MAX_SLOW_RESOURCES]:
            resource_url = resource.get("url", "")
            elapsed = resource["time"]
            if elapsed > 3000:
                severity = Severity.HIGH
            elif elapsed > 2000:
                severity = Severity.MEDIUM
            else:
                severity = Severity.LOW
            metrics.append(Metric(
                id=f"slow-resource-{resource_url}",
                title=f"Slow Resource: {resource_url.rstrip('/').split('/')[-1] or resource_url}",
                category=Category.PERFORMANCE,
                platform=self.platform,
                value=elapsed,
                description=f"Resource took {elapsed}ms to load",
                unit="ms",
                severity=severity,
            ))
        return metrics
