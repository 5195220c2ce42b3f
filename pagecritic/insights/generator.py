"""
LLM-generated improvement insights for an analysis.

The OpenAI client is created on first use so importing this module never
requires an API key.
"""

import json
import logging
import re
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from pagecritic.view import LegacyViewModel
from .cache import InsightsCache, make_cache_key
from .formatter import format_metrics_for_ai

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_MAX_TOKENS = 3000
DEFAULT_TEMPERATURE = 0.3

SEVERITIES = ("High", "Medium", "Low")
INSIGHT_CATEGORIES = ("Performance", "Accessibility", "SEO", "Best Practices", "Web Vitals")

SYSTEM_PROMPT = "You are an expert web performance analyst. Provide clear, actionable insights in JSON format."

PROMPT_TEMPLATE = """You are an expert web performance analyst. Analyze the following website metrics and provide actionable insights.

{metrics}
Please provide 5-8 specific, actionable insights. For each one give:

1. Title: clear, concise title
2. Description: plain English explanation of the issue and how to fix it
3. Severity: High, Medium, or Low based on impact
4. Category: Performance, Accessibility, SEO, Best Practices, or Web Vitals
5. Estimated Impact: expected improvement, with specific metrics where possible
6. Priority: number 1-10 (10 being highest priority)
7. Historical Context: how this type of issue typically evolves over time
8. Implementation Steps: 2-3 specific steps
9. Expected Timeline: hours, days or weeks
10. Cost Benefit: effort versus impact

Take into account historical trends, previous insights, consistency across data
sources and practical feasibility. Avoid duplicate or conflicting recommendations.

Return the response as a JSON array with this structure:
[
  {{
    "title": "string",
    "description": "string",
    "severity": "High|Medium|Low",
    "category": "Performance|Accessibility|SEO|Best Practices|Web Vitals",
    "estimatedImpact": "string",
    "priority": number,
    "historicalContext": "string",
    "implementationSteps": ["step1", "step2", "step3"],
    "expectedTimeline": "string",
    "costBenefit": "string"
  }}
]"""

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


@dataclass
class AIInsight:
    """One actionable suggestion returned by the LLM."""
    id: str
    title: str
    description: str
    severity: str = "Medium"
    category: str = "Best Practices"
    estimated_impact: str = "Improvement expected"
    priority: int = 5
    actionable: bool = True
    status: str = "pending"  # pending, applied, ignored
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    historical_context: Optional[str] = None
    implementation_steps: List[str] = field(default_factory=list)
    expected_timeline: str = "Unknown"
    cost_benefit: str = "Medium effort, medium impact"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def build_prompt(metrics_text: str) -> str:
    return PROMPT_TEMPLATE.format(metrics=metrics_text)


def _clamp_priority(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 5
    return int(min(max(value, 1), 10))


def _error_insight(stamp: str) -> AIInsight:
    return AIInsight(
        id=f"insight-{stamp}-fallback",
        title="Analysis Error",
        description="Unable to parse AI response. Please try again or check your configuration.",
        severity="Medium",
        category="Best Practices",
        estimated_impact="None",
        priority=1,
        actionable=False,
        historical_context="Error occurred during analysis",
        cost_benefit="No impact due to error",
    )


def parse_ai_response(text: str) -> List[AIInsight]:
    """
    Parse the JSON array embedded in an LLM reply.

    Unknown severities become Medium, unknown categories Best Practices and
    priorities are clamped to 1-10. Returns a single "Analysis Error" insight
    when no usable array is found.
    """
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S%f")
    match = _JSON_ARRAY.search(text or "")
    try:
        if not match:
            raise ValueError("No JSON array found in response")
        items = json.loads(match.group(0))
        if not isinstance(items, list):
            raise ValueError("Response JSON is not an array")

        insights = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                raise ValueError(f"Insight {index} is not an object")
            steps = item.get("implementationSteps")
            insights.append(AIInsight(
                id=f"insight-{stamp}-{index}",
                title=item.get("title") or "Untitled Insight",
                description=item.get("description") or "No description provided",
                severity=item.get("severity") if item.get("severity") in SEVERITIES else "Medium",
                category=item.get("category") if item.get("category") in INSIGHT_CATEGORIES else "Best Practices",
                estimated_impact=item.get("estimatedImpact") or "Improvement expected",
                priority=_clamp_priority(item.get("priority")),
                historical_context=item.get("historicalContext") or None,
                implementation_steps=[str(s) for s in steps] if isinstance(steps, list) else [],
                expected_timeline=item.get("expectedTimeline") or "Unknown",
                cost_benefit=item.get("costBenefit") or "Medium effort, medium impact",
            ))
        return insights
    except ValueError as e:
        logger.error(f"Error parsing AI response: {e}")
        return [_error_insight(stamp)]


def get_openai_client():
    """Lazy-load OpenAI client."""
    from openai import OpenAI
    from pagecritic.config.secrets import get_openai_key
    return OpenAI(api_key=get_openai_key())


class InsightGenerator:
    """
    Generates insights through an OpenAI chat model, memoized in a cache.

    Args:
        cache: Insight cache (default: a new InsightsCache)
        client: OpenAI-compatible client (default: created on first call)
        model: Chat model name
        max_tokens: Completion token budget
        temperature: Sampling temperature
    """

    def __init__(
        self,
        cache: Optional[InsightsCache] = None,
        client: Any = None,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
    ):
        self.cache = cache if cache is not None else InsightsCache()
        self._client = client
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    @property
    def client(self):
        if self._client is None:
            self._client = get_openai_client()
        return self._client

    def generate(
        self,
        view: LegacyViewModel,
        platforms: Optional[Sequence[str]] = None,
        site_history: Optional[Sequence[Dict[str, Any]]] = None,
        previous_insights: Optional[Sequence[AIInsight]] = None,
    ) -> List[AIInsight]:
        """
        Insights for one analysis.

        Raises:
            ValueError: If the view has no URL
            MissingAPIKeyError: If no client was injected and OPENAI_API_KEY is unset
        """
        if not view.url:
            raise ValueError("URL is required for insights generation")

        metrics_text = format_metrics_for_ai(view, platforms, site_history, previous_insights)
        key = make_cache_key(view.url, metrics_text)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info(f"Returning cached insights for {view.url}")
            return cached

        completion = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(metrics_text)},
            ],
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        content = completion.choices[0].message.content if completion.choices else ""

        insights = parse_ai_response(content or "")
        logger.info(f"Generated {len(insights)} insights for {view.url}")
        self.cache.set(key, insights)
        return insights
