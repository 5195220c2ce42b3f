"""
Provider health tracking across analysis runs.

Records per-provider success/failure history so the status view can flag
providers that keep failing.
"""

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .types import ProviderResult

logger = logging.getLogger(__name__)

# Health status thresholds
CONSECUTIVE_FAILURES_DEGRADED = 3
CONSECUTIVE_FAILURES_DOWN = 7

# Rolling average window
ROLLING_AVERAGE_RUNS = 7

DEFAULT_HEALTH_PATH = Path("data/_meta/platform_health.json")


@dataclass
class ProviderHealth:
    """Health status for a single provider."""
    platform: str
    last_success_at: Optional[str] = None
    last_failure_at: Optional[str] = None
    consecutive_failures: int = 0
    last_error: Optional[str] = None
    metrics_last_run: int = 0
    metrics_history: List[int] = field(default_factory=list)
    avg_metrics_per_run: float = 0.0
    status: str = "OK"  # OK, DEGRADED, DOWN

    def update_status(self):
        if self.consecutive_failures >= CONSECUTIVE_FAILURES_DOWN:
            self.status = "DOWN"
        elif self.consecutive_failures >= CONSECUTIVE_FAILURES_DEGRADED:
            self.status = "DEGRADED"
        else:
            self.status = "OK"

    def _push_history(self, count: int):
        self.metrics_history.append(count)
        self.metrics_history = self.metrics_history[-ROLLING_AVERAGE_RUNS:]
        self.avg_metrics_per_run = sum(self.metrics_history) / len(self.metrics_history)

    def record_success(self, metric_count: int, timestamp: Optional[datetime] = None):
        """Record a fetch that produced ``metric_count`` metrics."""
        timestamp = timestamp or datetime.now(timezone.utc)
        self.last_success_at = timestamp.isoformat()
        self.consecutive_failures = 0
        self.last_error = None
        self.metrics_last_run = metric_count
        self._push_history(metric_count)
        self.update_status()

    def record_failure(self, error: str, timestamp: Optional[datetime] = None):
        """Record a failed fetch."""
        timestamp = timestamp or datetime.now(timezone.utc)
        self.last_failure_at = timestamp.isoformat()
        self.consecutive_failures += 1
        self.last_error = error
        self.metrics_last_run = 0
        self._push_history(0)
        self.update_status()


@dataclass
class HealthTracker:
    """Tracks health for all providers across runs."""
    providers: Dict[str, ProviderHealth] = field(default_factory=dict)
    last_updated_at: Optional[str] = None

    def get_or_create(self, platform: str) -> ProviderHealth:
        if platform not in self.providers:
            self.providers[platform] = ProviderHealth(platform=platform)
        return self.providers[platform]

    def record_results(self, results: Iterable[ProviderResult]):
        """Fold one batch of provider results into the tracker."""
        for result in results:
            health = self.get_or_create(result.platform)
            if result.ok:
                health.record_success(len(result.metrics))
            else:
                health.record_failure(result.error)
                if health.status != "OK":
                    logger.warning(
                        f"{result.platform} is {health.status} "
                        f"after {health.consecutive_failures} consecutive failures"
                    )

    def get_summary(self) -> Dict[str, Any]:
        statuses = {"OK": 0, "DEGRADED": 0, "DOWN": 0}
        for health in self.providers.values():
            statuses[health.status] = statuses.get(health.status, 0) + 1

        degraded = [h.platform for h in self.providers.values() if h.status == "DEGRADED"]
        down = [h.platform for h in self.providers.values() if h.status == "DOWN"]

        return {
            "total_providers": len(self.providers),
            "status_counts": statuses,
            "degraded_providers": degraded,
            "down_providers": down,
            "overall_status": "DOWN" if down else ("DEGRADED" if degraded else "OK"),
        }

    def to_dict(self) -> Dict:
        return {
            "last_updated_at": self.last_updated_at,
            "providers": {k: asdict(v) for k, v in self.providers.items()},
            "summary": self.get_summary(),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "HealthTracker":
        tracker = cls(last_updated_at=data.get("last_updated_at"))
        known = set(ProviderHealth.__dataclass_fields__)
        for platform, values in data.get("providers", {}).items():
            values = {k: v for k, v in values.items() if k in known}
            values.setdefault("platform", platform)
            tracker.providers[platform] = ProviderHealth(**values)
        return tracker


def load_health_tracker(path: Path = DEFAULT_HEALTH_PATH) -> HealthTracker:
    """Load the tracker from disk, or start a new one."""
    path = Path(path)
    if not os.path.exists(path):
        return HealthTracker()

    try:
        with open(path, "r") as f:
            return HealthTracker.from_dict(json.load(f))
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning(f"Could not load health tracker from {path}: {e}")
        return HealthTracker()


def save_health_tracker(tracker: HealthTracker, path: Path = DEFAULT_HEALTH_PATH):
    tracker.last_updated_at = datetime.now(timezone.utc).isoformat()
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(tracker.to_dict(), f, indent=2)
