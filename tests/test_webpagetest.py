"""Tests for the WebPageTest provider (submit + poll)."""

from unittest.mock import MagicMock, patch

import pytest

from pagecritic.config.platforms import PlatformConfig
from pagecritic.platforms.types import Category, Severity
from pagecritic.platforms.webpagetest import (
    POLL_INTERVAL_SECONDS,
    WebPageTestProvider,
    estimate_performance_score,
)

SUBMITTED = {
    "statusCode": 200,
    "statusText": "Ok",
    "data": {"testId": "240101_AB_1", "jsonUrl": "https://wpt.test/jsonResult.php?test=240101_AB_1"},
}

PENDING = {"statusCode": 101, "statusText": "Test Started"}

FIRST_VIEW = {
    "LargestContentfulPaint": 2800,
    "FirstInputDelay": 50,
    "CumulativeLayoutShift": 0.3,
    "SpeedIndex": 2500,
    "TTFB": 300,
    "firstContentfulPaint": 1100,
    "loadEventStart": 3500,
    "requestsFull": 42,
    "bytesIn": 1048576,
    "imageBytes": 500000,
    "details": {
        "waterfall": [
            {"url": "https://example.com/static/app.js", "time": 3500},
            {"url": "https://example.com/hero.png", "time": 2500},
            {"url": "https://example.com/fast.css", "time": 200},
            {"url": "https://example.com/", "time": 1200},
        ]
    },
}

COMPLETE = {"statusCode": 200, "data": {"runs": {"1": {"firstView": FIRST_VIEW}}}}


def _response(payload, status=200):
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 300
    response.json.return_value = payload
    return response


@pytest.fixture
def config():
    return PlatformConfig(enabled=True, api_key="wpt-key", endpoint="https://wpt.test", timeout=60, retries=3)


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("pagecritic.platforms.webpagetest.time.sleep") as mock_sleep:
        yield mock_sleep


class TestPerformanceScore:
    """Tests for the heuristic performance score."""

    def test_all_good(self):
        assert estimate_performance_score(2000, 50, 0.05) == 100

    def test_needs_improvement(self):
        assert estimate_performance_score(3000, 150, 0.2) == 55

    def test_all_poor(self):
        assert estimate_performance_score(5000, 400, 0.5) == 10

    def test_missing_vitals_do_not_deduct(self):
        assert estimate_performance_score(None, None, None) == 100


class TestWebPageTestProvider:
    """Tests for WebPageTestProvider.fetch_metrics."""

    @patch("pagecritic.platforms.webpagetest._session.get")
    def test_submit_then_poll_until_complete(self, mock_get, config, no_sleep):
        """Pending polls are retried until the first run is available."""
        mock_get.side_effect = [_response(SUBMITTED), _response(PENDING), _response(COMPLETE)]

        result = WebPageTestProvider().fetch_metrics("https://example.com", config)

        assert result.ok
        assert mock_get.call_count == 3
        no_sleep.assert_called_with(POLL_INTERVAL_SECONDS)
        submit_params = mock_get.call_args_list[0][1]["params"]
        assert submit_params["k"] == "wpt-key"
        assert submit_params["f"] == "json"
        assert submit_params["location"] == "Dulles:Chrome"
        assert mock_get.call_args_list[0][0][0] == "https://wpt.test/runtest.php"
        assert mock_get.call_args_list[1][0][0] == SUBMITTED["data"]["jsonUrl"]

    @patch("pagecritic.platforms.webpagetest._session.get")
    def test_metrics_mapping(self, mock_get, config):
        mock_get.side_effect = [_response(SUBMITTED), _response(COMPLETE)]

        result = WebPageTestProvider().fetch_metrics("https://example.com", config)
        metrics = {m.id: m for m in result.metrics}

        assert metrics["lcp"].category == Category.WEB_VITALS
        assert metrics["lcp"].value == 2800
        assert metrics["si"].value == 2500
        assert "tti" not in metrics
        assert metrics["first-byte"].unit == "ms"
        assert metrics["total-requests"].unit == "count"
        assert metrics["total-bytes"].unit == "bytes"
        assert metrics["image-bytes"].unit == "bytes"
        # LCP needs improvement (-15), CLS poor (-30)
        assert metrics["performance-score"].score == 55

    @patch("pagecritic.platforms.webpagetest._session.get")
    def test_slow_resources(self, mock_get, config):
        mock_get.side_effect = [_response(SUBMITTED), _response(COMPLETE)]

        result = WebPageTestProvider().fetch_metrics("https://example.com", config)
        slow = [m for m in result.metrics if m.id.startswith("slow-resource-")]

        assert [m.title for m in slow] == [
            "Slow Resource: app.js",
            "Slow Resource: hero.png",
            "Slow Resource: example.com",
        ]
        assert [m.severity for m in slow] == [Severity.HIGH, Severity.MEDIUM, Severity.LOW]
        assert slow[0].description == "Resource took 3500ms to load"

    @patch("pagecritic.platforms.webpagetest._session.get")
    def test_submit_rejected(self, mock_get, config):
        mock_get.return_value = _response({"statusCode": 400, "statusText": "Invalid API Key"})

        result = WebPageTestProvider().fetch_metrics("https://example.com", config)

        assert result.error == "WebPageTest error: Invalid API Key"
        assert mock_get.call_count == 1

    @patch("pagecritic.platforms.webpagetest._session.get")
    def test_poll_exhausted(self, mock_get, config, no_sleep):
        mock_get.side_effect = [_response(SUBMITTED)] + [_response(PENDING)] * 3

        result = WebPageTestProvider().fetch_metrics("https://example.com", config)

        assert result.error == "WebPageTest results not available after maximum attempts"
        assert no_sleep.call_count == 3

    @patch("pagecritic.platforms.webpagetest._session.get")
    def test_poll_failure_is_retried(self, mock_get, config):
        import requests

        mock_get.side_effect = [_response(SUBMITTED), requests.Timeout("slow"), _response(COMPLETE)]

        result = WebPageTestProvider().fetch_metrics("https://example.com", config)

        assert result.ok

    @patch("pagecritic.platforms.webpagetest._session.get")
    def test_anonymous_submit_omits_key(self, mock_get, config):
        mock_get.side_effect = [_response(SUBMITTED), _response(COMPLETE)]
        anonymous = PlatformConfig(enabled=True, retries=1)

        WebPageTestProvider().fetch_metrics("https://example.com", anonymous)

        assert "k" not in mock_get.call_args_list[0][1]["params"]
        assert mock_get.call_args_list[0][0][0] == "https://www.webpagetest.org/runtest.php"
