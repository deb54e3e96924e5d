from __future__ import annotations

from .load import load_config
from .schema import (
    AppConfig,
    CacheConfig,
    EmbedExtractionRules,
    EnvOverrides,
    ResolutionConfig,
    TokenRule,
    UpstreamConfig,
)

__all__ = [
    "AppConfig",
    "CacheConfig",
    "EmbedExtractionRules",
    "EnvOverrides",
    "ResolutionConfig",
    "TokenRule",
    "UpstreamConfig",
    "load_config",
]
