"""Provider adapters, the shared metric schema and the fetch orchestrator."""

from .types import Category, ConsolidatedResult, Metric, ProviderResult, Severity

__all__ = ["Category", "ConsolidatedResult", "Metric", "ProviderResult", "Severity"]
