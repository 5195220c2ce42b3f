"""Abstract base class for all performance-data providers."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from pagecritic.config.platforms import PlatformConfig
from .types import (
    Category,
    Metric,
    ProviderResult,
    WEB_VITAL_TITLES,
    category_score_metric,
    get_web_vital_target,
    utc_now_iso,
)

logger = logging.getLogger(__name__)


def build_session() -> requests.Session:
    """HTTP session with a single transport-level retry for gateway errors."""
    retry = Retry(total=1, allowed_methods=["GET"], backoff_factor=1, status_forcelist=[502, 503, 504])
    session = requests.Session()
    session.mount("https://", HTTPAdapter(max_retries=retry))
    session.mount("http://", HTTPAdapter(max_retries=retry))
    return session


class ProviderError(Exception):
    """Exception raised inside a provider when a fetch cannot produce metrics."""
    def __init__(self, platform: str, message: str, original_error: Optional[Exception] = None):
        self.platform = platform
        self.message = message
        self.original_error = original_error
        super().__init__(message)


class BaseProvider(ABC):
    """Abstract base for provider adapters.

    Subclasses implement ``_fetch_impl``; ``fetch_metrics`` wraps it so that
    every failure mode comes back as a ProviderResult with ``error`` set.
    """

    platform: str = ""
    display_name: str = ""
    requires_api_key: bool = False

    def is_configured(self, config: PlatformConfig) -> bool:
        """Whether configuration-level prerequisites (API key) are met."""
        return bool(config.api_key) or not self.requires_api_key

    @abstractmethod
    def _fetch_impl(self, url: str, config: PlatformConfig) -> Tuple[List[Metric], Any]:
        """
        Internal fetch implementation - to be overridden by subclasses.

        Args:
            url: Page to audit
            config: This provider's configuration

        Returns:
            Tuple of (metrics, raw provider payload)

        Raises:
            Exception on fetch failure
        """
        pass

    def fetch_metrics(self, url: str, config: PlatformConfig) -> ProviderResult:
        """
        Fetch and normalize metrics for ``url``. Never raises.

        Returns:
            ProviderResult with metrics on success, or with ``error`` and no metrics
        """
        try:
            metrics, raw = self._fetch_impl(url, config)
        except Exception as e:
            logger.error(f"{self.platform} fetch failed for {url}: {e}")
            return self.error_result(url, str(e) or type(e).__name__)

        logger.info(f"{self.platform}: {len(metrics)} metrics for {url}")
        return ProviderResult(
            platform=self.platform,
            url=url,
            timestamp=utc_now_iso(),
            metrics=tuple(metrics),
            raw_data=raw,
        )

    def error_result(self, url: str, message: str) -> ProviderResult:
        return ProviderResult(
            platform=self.platform,
            url=url,
            timestamp=utc_now_iso(),
            metrics=(),
            error=message,
        )

    def decode_json(self, response: requests.Response, what: str) -> Dict[str, Any]:
        """Parse a JSON body, turning malformed payloads into ProviderError."""
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(self.platform, f"{what} returned malformed JSON", e) from e
        if not isinstance(data, dict):
            raise ProviderError(self.platform, f"{what} returned unexpected payload type {type(data).__name__}")
        return data

    def web_vital_metric(self, vital_id: str, value: float) -> Metric:
        return Metric(
            id=vital_id,
            title=WEB_VITAL_TITLES[vital_id],
            category=Category.WEB_VITALS,
            platform=self.platform,
            value=value,
            unit=None if vital_id == "cls" else "ms",
            actual=value,
            target=get_web_vital_target(vital_id),
        )

    def category_score_metric(self, category: Category, score: float) -> Metric:
        return category_score_metric(self.platform, category, score)
