"""
Provider configuration loading and validation.

Defaults come from config/platforms.yaml (or built-in values when the file
is absent) and are overridden by environment variables:

    ENABLE_LIGHTHOUSE     enabled unless set to "false"
    ENABLE_PAGESPEED      enabled only when set to "true"
    ENABLE_WEBPAGETEST    enabled only when set to "true"
    LIGHTHOUSE_ENDPOINT   base URL of the local Lighthouse service
    PAGESPEED_API_KEY     required for PageSpeed Insights
    WEBPAGETEST_API_KEY   optional (anonymous tests use the free tier)
    WEBPAGETEST_ENDPOINT  alternative WebPageTest instance
"""

import copy
import logging
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import jsonschema
import yaml

from .secrets import get_pagespeed_key, get_webpagetest_key

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/platforms.yaml")

DEFAULT_PLATFORMS: Dict[str, Dict[str, Any]] = {
    "lighthouse": {
        "enabled": True,
        "endpoint": "http://localhost:3001",
        "timeout": 30,
        "retries": 1,
    },
    "pagespeed": {
        "enabled": False,
        "endpoint": "https://www.googleapis.com/pagespeedonline/v5/runPagespeed",
        "timeout": 30,
        "retries": 1,
    },
    "webpagetest": {
        "enabled": False,
        "endpoint": "https://www.webpagetest.org",
        # WebPageTest queues tests; 30 polls at 10s intervals
        "timeout": 300,
        "retries": 30,
    },
}

PLATFORMS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "platforms": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "properties": {
                    "enabled": {"type": "boolean"},
                    "api_key": {"type": ["string", "null"]},
                    "endpoint": {"type": ["string", "null"]},
                    "timeout": {"type": "number", "exclusiveMinimum": 0},
                    "retries": {"type": "integer", "minimum": 0},
                },
                "additionalProperties": False,
            },
        },
    },
    "required": ["platforms"],
}


class PlatformConfigError(Exception):
    """Raised when the platforms configuration file is invalid."""
    pass


@dataclass
class PlatformConfig:
    """Settings for a single provider.

    Attributes:
        enabled: Whether the orchestrator may schedule this provider.
        api_key: Provider API key, if any.
        endpoint: Base URL override for the provider API.
        timeout: Per-provider deadline in seconds.
        retries: Provider-scoped retry/poll budget.
    """
    enabled: bool = False
    api_key: Optional[str] = None
    endpoint: Optional[str] = None
    timeout: float = 30
    retries: int = 1

    def to_dict(self, redact: bool = True) -> Dict[str, Any]:
        d = asdict(self)
        if redact and d["api_key"]:
            d["api_key"] = "***"
        return d


@dataclass
class PlatformsConfig:
    """Configuration for every known provider, keyed by platform name."""
    platforms: Dict[str, PlatformConfig] = field(default_factory=dict)

    def get(self, name: str) -> PlatformConfig:
        """Config for ``name``; unknown providers are treated as disabled."""
        return self.platforms.get(name) or PlatformConfig(enabled=False)

    def enabled_names(self) -> List[str]:
        return [name for name, cfg in self.platforms.items() if cfg.enabled]

    def to_dict(self) -> Dict[str, Any]:
        return {name: cfg.to_dict() for name, cfg in self.platforms.items()}


def load_platforms_file(path: Path = DEFAULT_CONFIG_PATH) -> Dict[str, Dict[str, Any]]:
    """
    Load provider defaults from YAML.

    Args:
        path: Path to platforms.yaml

    Returns:
        Mapping of platform name to raw settings, merged over built-in defaults

    Raises:
        PlatformConfigError: If the file does not match the expected schema
    """
    merged = copy.deepcopy(DEFAULT_PLATFORMS)
    path = Path(path)
    if not path.exists():
        logger.debug(f"No platforms config at {path}, using built-in defaults")
        return merged

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    try:
        jsonschema.validate(data, PLATFORMS_SCHEMA)
    except jsonschema.ValidationError as e:
        where = ".".join(str(p) for p in e.absolute_path) if e.absolute_path else "<root>"
        raise PlatformConfigError(f"Invalid platforms config {path} at {where}: {e.message}") from e

    for name, settings in data["platforms"].items():
        merged.setdefault(name, {}).update(settings)
    return merged


def _env_flag(env: Mapping[str, str], name: str, default_on: bool) -> Optional[bool]:
    """Interpret an ENABLE_* flag; None when the variable is unset."""
    raw = env.get(name)
    if raw is None:
        return None
    if default_on:
        return raw.strip().lower() != "false"
    return raw.strip().lower() == "true"


def load_platforms_config(
    path: Path = DEFAULT_CONFIG_PATH,
    environ: Optional[Mapping[str, str]] = None,
) -> PlatformsConfig:
    """
    Build the typed provider configuration from file defaults and environment.

    Args:
        path: Path to platforms.yaml
        environ: Environment mapping (default: os.environ)

    Returns:
        PlatformsConfig with one entry per known provider
    """
    env = os.environ if environ is None else environ
    raw = load_platforms_file(path)

    overrides = {
        "lighthouse": {
            "enabled": _env_flag(env, "ENABLE_LIGHTHOUSE", default_on=True),
            "endpoint": env.get("LIGHTHOUSE_ENDPOINT"),
        },
        "pagespeed": {
            "enabled": _env_flag(env, "ENABLE_PAGESPEED", default_on=False),
            "api_key": get_pagespeed_key(env),
        },
        "webpagetest": {
            "enabled": _env_flag(env, "ENABLE_WEBPAGETEST", default_on=False),
            "api_key": get_webpagetest_key(env),
            "endpoint": env.get("WEBPAGETEST_ENDPOINT"),
        },
    }
    for name, values in overrides.items():
        settings = raw.setdefault(name, {})
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str):
                value = value.strip() or None
                if value is None:
                    continue
            settings[key] = value

    config = PlatformsConfig(platforms={
        name: PlatformConfig(
            enabled=bool(settings.get("enabled", False)),
            api_key=settings.get("api_key") or None,
            endpoint=settings.get("endpoint") or None,
            timeout=settings.get("timeout", 30),
            retries=settings.get("retries", 1),
        )
        for name, settings in raw.items()
    })

    validate_platforms_config(config)
    return config


def validate_platforms_config(config: PlatformsConfig) -> List[str]:
    """
    Check provider prerequisites and log problems.

    Misconfigured providers are not fatal: the orchestrator skips them.

    Returns:
        List of configuration errors (empty if valid)
    """
    errors: List[str] = []

    pagespeed = config.get("pagespeed")
    if pagespeed.enabled and not pagespeed.api_key:
        errors.append("PageSpeed Insights is enabled but no API key is provided")

    webpagetest = config.get("webpagetest")
    if webpagetest.enabled and not webpagetest.api_key:
        logger.warning("WebPageTest is enabled without API key - using free tier")

    if errors:
        logger.error(f"Platform configuration errors: {errors}")

    return errors
