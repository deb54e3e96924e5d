"""Pydantic configuration models with validation."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]

DEFAULT_BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class CacheConfig(BaseSettings):
    """Cache configuration (backend-agnostic)."""

    backend: Literal["diskcache", "redis"] = Field(
        default="diskcache",
        description="Cache backend: 'diskcache' (SQLite) or 'redis'",
    )

    # Diskcache settings
    directory: Path = Field(
        default=Path("./.cache/plumenest"),
        alias="dir",
        description="Diskcache SQLite DB path",
    )

    # Redis settings
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (only when backend=redis)",
    )

    # Shared settings
    ttl_seconds: int = Field(
        default=86_400,
        description=(
            "Adapter default TTL (seconds) for writes without an explicit ttl; "
            "stream results and listings use the resolution.* TTLs."
        ),
    )
    max_concurrent: int = Field(
        default=10,
        description="Max parallel cache ops (semaphore limit)",
    )

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",  # Env vars: CACHE_BACKEND, CACHE_REDIS_URL, ...
        case_sensitive=False,
        populate_by_name=True,
    )

    @field_validator("directory", mode="before")
    @classmethod
    def _validate_directory(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("ttl_seconds")
    @classmethod
    def _validate_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError("cache ttl_seconds must be >= 0")
        return v


class TokenRule(BaseModel):
    """Where to look for the session token in the embed page."""

    selector: str
    attribute: str


class EmbedExtractionRules(BaseModel):
    """Versioned scraping rules for the embed provider.

    Upstream layout changes are absorbed here (YAML ``upstream.extraction``)
    instead of in code.
    """

    version: int = Field(default=1, description="Rule-set revision.")
    token_rules: list[TokenRule] = Field(
        default_factory=lambda: [
            TokenRule(selector="script[nonce]", attribute="nonce"),
            TokenRule(selector="[data-dpi]", attribute="data-dpi"),
        ],
        description="Session token locations, tried in order.",
    )
    embed_id_pattern: str = Field(
        default=r"/e-1/([A-Za-z0-9_-]+)",
        description="Regex with one group capturing the embed ID from the embed URL.",
    )
    sources_path: str = Field(
        default="/embed-1/v3/e-1/getSources",
        description="Path of the provider's source-resolution endpoint.",
    )
    iframe_selector: str = Field(
        default="iframe",
        description="Player iframe (browser strategy).",
    )
    player_selector: str = Field(
        default=".jw-display-icon-container, .jw-icon-playback, #player",
        description="Clickable player control inside the iframe (browser strategy).",
    )

    @field_validator("embed_id_pattern")
    @classmethod
    def _validate_pattern(cls, v: str) -> str:
        compiled = re.compile(v)
        if compiled.groups < 1:
            raise ValueError("embed_id_pattern needs one capturing group")
        return v

    @field_validator("token_rules")
    @classmethod
    def _validate_token_rules(cls, v: list[TokenRule]) -> list[TokenRule]:
        if not v:
            raise ValueError("token_rules must not be empty")
        return v


class UpstreamConfig(BaseModel):
    """Upstream catalog, embed provider, and key registry."""

    catalog_base_url: str = Field(
        default="https://fmovies.ro",
        description="Catalog site hosting server lists and source links.",
    )
    embed_base_url: str = Field(
        default="https://videostr.net",
        description="Only embed URLs under this origin are negotiated.",
    )
    browser_user_agent: str = Field(
        default=DEFAULT_BROWSER_USER_AGENT,
        description="User-Agent sent to catalog and embed provider.",
    )
    key_registry_url: str = Field(
        default=(
            "https://raw.githubusercontent.com/yogesh-hacker/MegacloudKeys"
            "/refs/heads/main/keys.json"
        ),
        description="Remote JSON object mapping provider name -> key.",
    )
    key_provider_preference: list[str] = Field(
        default_factory=lambda: ["vidstr", "mega"],
        description="Provider namespaces, most preferred first.",
    )
    fallback_keys: dict[str, str] = Field(
        default_factory=dict,
        description=(
            "Static provider -> key table used when the registry fails. Empty by "
            "default: keys rotate, so operators supply current ones via YAML "
            "(upstream.fallback_keys) or PLUMENEST_FALLBACK_KEYS as a JSON object. "
            "Without it a registry outage yields decryptionKey=null."
        ),
    )
    key_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for the key registry request.",
    )
    extraction: EmbedExtractionRules = Field(default_factory=EmbedExtractionRules)

    @field_validator("catalog_base_url", "embed_base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class ResolutionConfig(BaseModel):
    """Stream resolution pipeline tuning."""

    stream_ttl_seconds: int = Field(
        default=14_400,
        description="TTL for cached stream results (signed URLs age out). Default 4h.",
    )
    overall_deadline_seconds: float = Field(
        default=120.0,
        description="Upper bound for one resolution across all servers/strategies.",
    )
    browser_timeout_seconds: float = Field(
        default=45.0,
        description="Timeout for a single browser-emulation attempt.",
    )
    browser_fallback_enabled: bool = Field(
        default=True,
        description="Escalate to browser emulation when the fast path fails.",
    )
    catalog_ttl_seconds: int = Field(
        default=86_400,
        description="TTL for cached season/episode listings.",
    )

    @field_validator(
        "overall_deadline_seconds", "browser_timeout_seconds"
    )
    @classmethod
    def _validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be > 0")
        return v


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/playwright/logging/cache/upstream/resolution).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="plumenest", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=20.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="HTTP timeout in seconds for each upstream request.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
        description="Whether HTTP client follows redirects.",
    )
    http_user_agent: str = Field(
        default=DEFAULT_BROWSER_USER_AGENT,
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="Default User-Agent for outgoing HTTP requests.",
    )

    # Playwright (YAML section: playwright.*)
    playwright_headless: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "playwright_headless",
            AliasPath("playwright", "headless"),
        ),
        description="Run Playwright headless.",
    )
    playwright_timeout_ms: int = Field(
        default=30_000,
        validation_alias=AliasChoices(
            "playwright_timeout_ms",
            AliasPath("playwright", "timeout_ms"),
        ),
        description="Playwright navigation/selector timeout in milliseconds.",
    )
    playwright_stealth: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "playwright_stealth",
            AliasPath("playwright", "stealth"),
        ),
        description="Apply playwright-stealth evasions to the browser context.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    cache: CacheConfig = Field(default_factory=CacheConfig)
    upstream: UpstreamConfig = Field(default_factory=UpstreamConfig)
    resolution: ResolutionConfig = Field(default_factory=ResolutionConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @field_validator("playwright_timeout_ms")
    @classmethod
    def _validate_playwright_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("playwright_timeout_ms must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "user_agent": self.http_user_agent,
            },
            "playwright": {
                "headless": self.playwright_headless,
                "timeout_ms": self.playwright_timeout_ms,
                "stealth": self.playwright_stealth,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "cache": {
                "backend": self.cache.backend,
                "dir": str(self.cache.directory),
                "redis_url": self.cache.redis_url,
                "ttl_seconds": self.cache.ttl_seconds,
                "max_concurrent": self.cache.max_concurrent,
            },
            "upstream": self.upstream.model_dump(),
            "resolution": self.resolution.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read PLUMENEST_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - PLUMENEST_HTTP_TIMEOUT_SECONDS
    - PLUMENEST_PLAYWRIGHT_HEADLESS
    - PLUMENEST_LOG_LEVEL
    - PLUMENEST_STREAM_TTL_SECONDS
    - PLUMENEST_FALLBACK_KEYS (JSON object, e.g. {"vidstr": "..."})
    """

    model_config = SettingsConfigDict(
        env_prefix="PLUMENEST_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None

    playwright_headless: Optional[bool] = None
    playwright_timeout_ms: Optional[int] = None
    playwright_stealth: Optional[bool] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    cache_dir: Optional[Path] = None
    cache_backend: Optional[Literal["diskcache", "redis"]] = None
    cache_redis_url: Optional[str] = None

    catalog_base_url: Optional[str] = None
    embed_base_url: Optional[str] = None
    key_registry_url: Optional[str] = None
    fallback_keys: Optional[dict[str, str]] = None

    stream_ttl_seconds: Optional[int] = None
    overall_deadline_seconds: Optional[float] = None
    browser_timeout_seconds: Optional[float] = None
    browser_fallback_enabled: Optional[bool] = None

    @field_validator("cache_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
