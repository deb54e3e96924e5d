"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "plumenest",
    "environment": "dev",
    "http": {
        "timeout_seconds": 20.0,
        "follow_redirects": True,
    },
    "playwright": {
        "headless": True,
        "timeout_ms": 30_000,
        "stealth": True,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "cache": {
        "dir": "./.cache/plumenest",
        "backend": "diskcache",
        "ttl_seconds": 86_400,
    },
    "upstream": {
        "catalog_base_url": "https://fmovies.ro",
        "embed_base_url": "https://videostr.net",
        "key_provider_preference": ["vidstr", "mega"],
    },
    "resolution": {
        "stream_ttl_seconds": 14_400,
        "overall_deadline_seconds": 120.0,
        "browser_timeout_seconds": 45.0,
        "browser_fallback_enabled": True,
    },
}
