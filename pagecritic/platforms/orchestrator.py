"""
Fetch orchestrator: fans a URL out to every enabled provider.

Adapters are blocking (requests + polling sleeps), so each scheduled fetch
runs on a worker thread and is awaited with its own ``config.timeout``. The
batch settles when every fetch has either returned or timed out; a fetch
that times out keeps running in its thread but its result is discarded.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pagecritic.config.platforms import PlatformConfig, PlatformsConfig
from .base_provider import BaseProvider
from .health import HealthTracker
from .registry import PROVIDERS
from .types import Category, ProviderResult, category_score_metric, utc_now_iso

logger = logging.getLogger(__name__)

FALLBACK_PLATFORM = "fallback"

# Placeholder category scores used when no provider can be scheduled.
# No Web Vitals here: vitals are only ever measured.
FALLBACK_SCORES: Dict[Category, int] = {
    Category.PERFORMANCE: 85,
    Category.ACCESSIBILITY: 90,
    Category.SEO: 88,
    Category.BEST_PRACTICES: 92,
}


def build_fallback_result(url: str) -> ProviderResult:
    """Synthetic result carrying placeholder category scores and no vitals."""
    return ProviderResult(
        platform=FALLBACK_PLATFORM,
        url=url,
        timestamp=utc_now_iso(),
        metrics=tuple(
            category_score_metric(FALLBACK_PLATFORM, category, score)
            for category, score in FALLBACK_SCORES.items()
        ),
    )


def schedule_providers(
    config: PlatformsConfig,
    providers: Mapping[str, BaseProvider],
) -> List[Tuple[str, BaseProvider]]:
    """(registry name, provider) pairs that are enabled and configured, in registry order."""
    scheduled = []
    for name, provider in providers.items():
        platform_config = config.get(name)
        if not platform_config.enabled:
            logger.debug(f"{name} is disabled")
            continue
        if not provider.is_configured(platform_config):
            logger.warning(f"{name} is enabled but not configured (API key missing), skipping")
            continue
        logger.info(f"Scheduling {name}")
        scheduled.append((name, provider))
    return scheduled


async def _fetch_one(
    loop: asyncio.AbstractEventLoop,
    executor: ThreadPoolExecutor,
    provider: BaseProvider,
    url: str,
    platform_config: PlatformConfig,
) -> ProviderResult:
    future = loop.run_in_executor(executor, provider.fetch_metrics, url, platform_config)
    try:
        return await asyncio.wait_for(future, timeout=platform_config.timeout)
    except asyncio.TimeoutError:
        logger.error(f"{provider.platform} timed out after {platform_config.timeout}s for {url}")
        return provider.error_result(url, f"{provider.display_name} timed out after {platform_config.timeout}s")


async def fetch_all(
    url: str,
    config: PlatformsConfig,
    providers: Optional[Mapping[str, BaseProvider]] = None,
    tracker: Optional[HealthTracker] = None,
) -> List[ProviderResult]:
    """
    Fetch metrics for ``url`` from every enabled, configured provider.

    Args:
        url: Page to audit
        config: Provider configuration
        providers: Provider registry (default: the static PROVIDERS map)
        tracker: Optional health tracker updated with the batch outcome

    Returns:
        One ProviderResult per scheduled provider, in settlement order, or a
        single fallback result when nothing could be scheduled
    """
    providers = PROVIDERS if providers is None else providers
    scheduled = schedule_providers(config, providers)

    if not scheduled:
        logger.warning("No platforms enabled, providing fallback data")
        return [build_fallback_result(url)]

    loop = asyncio.get_running_loop()
    executor = ThreadPoolExecutor(max_workers=len(scheduled), thread_name_prefix="pagecritic-fetch")
    results: List[ProviderResult] = []

    async def settle(name: str, provider: BaseProvider):
        try:
            result = await _fetch_one(loop, executor, provider, url, config.get(name))
        except Exception as e:
            logger.error(f"{provider.platform} raised outside its adapter: {e}")
            result = provider.error_result(url, str(e) or type(e).__name__)
        results.append(result)

    try:
        await asyncio.gather(*(settle(name, p) for name, p in scheduled))
    finally:
        # Timed-out fetches are left to finish on their own
        executor.shutdown(wait=False, cancel_futures=True)

    failed = [r.platform for r in results if not r.ok]
    logger.info(f"Fetched {url}: {len(results) - len(failed)} succeeded, {len(failed)} failed")
    if failed:
        logger.warning(f"Failed platforms for {url}: {failed}")

    if tracker is not None:
        tracker.record_results(results)

    return results


def fetch_all_sync(
    url: str,
    config: PlatformsConfig,
    providers: Optional[Mapping[str, BaseProvider]] = None,
    tracker: Optional[HealthTracker] = None,
) -> List[ProviderResult]:
    """Blocking wrapper around fetch_all for callers without an event loop."""
    return asyncio.run(fetch_all(url, config, providers=providers, tracker=tracker))


def get_platform_statuses(
    config: PlatformsConfig,
    tracker: Optional[HealthTracker] = None,
    providers: Optional[Mapping[str, BaseProvider]] = None,
) -> List[Dict[str, Any]]:
    """
    Describe every registered provider's configuration state.

    ``status`` is ``enabled``, ``disabled`` or ``not-configured`` (enabled but
    missing a prerequisite). With a tracker, ``health`` carries OK/DEGRADED/DOWN.
    """
    providers = PROVIDERS if providers is None else providers
    statuses = []
    for name, provider in providers.items():
        platform_config = config.get(name)
        configured = provider.is_configured(platform_config)
        if not platform_config.enabled:
            status = "disabled"
        elif configured:
            status = "enabled"
        else:
            status = "not-configured"

        entry: Dict[str, Any] = {
            "name": provider.display_name,
            "key": name,
            "enabled": platform_config.enabled,
            "configured": configured,
            "status": status,
            "config": platform_config.to_dict(),
        }
        if status == "not-configured":
            entry["error"] = "API key required"
        if tracker is not None and name in tracker.providers:
            health = tracker.providers[name]
            entry["health"] = health.status
            entry["last_error"] = health.last_error
        statuses.append(entry)
    return statuses
