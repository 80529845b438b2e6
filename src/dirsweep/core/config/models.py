"""
Pydantic configuration models for Dirsweep.

These models provide type-safe configuration with validation for:
- Pacing constants (gate spacing, backoff, batching, cooldowns)
- Browser session settings
- Directory service selectors and block markers
- Output and logging settings
"""

from __future__ import annotations

import random
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# Duration Ranges
# =============================================================================


class MsRange(BaseModel):
    """Closed [min_ms, max_ms] range of milliseconds.

    Every randomized wait in a run is drawn uniformly from one of these.
    """

    model_config = ConfigDict(frozen=True)

    min_ms: int = Field(..., ge=0, description="Lower bound in milliseconds")
    max_ms: int = Field(..., ge=0, description="Upper bound in milliseconds")

    @model_validator(mode="after")
    def max_gte_min(self) -> "MsRange":
        """Ensure max is at least min."""
        if self.max_ms < self.min_ms:
            raise ValueError("max_ms must be >= min_ms")
        return self

    @classmethod
    def of(cls, min_ms: int, max_ms: int) -> "MsRange":
        return cls(min_ms=min_ms, max_ms=max_ms)

    def draw(self, rng: random.Random | None = None) -> int:
        """Draw a uniform integer number of milliseconds from the range."""
        return (rng or random).randint(self.min_ms, self.max_ms)

    def widen(self, min_increment: int, max_increment: int) -> "MsRange":
        """Return a new range with both bounds raised by the increments."""
        return MsRange(
            min_ms=self.min_ms + max(0, min_increment),
            max_ms=self.max_ms + max(0, max_increment),
        )

    def __str__(self) -> str:
        return f"{self.min_ms / 1000:.1f}-{self.max_ms / 1000:.1f}s"


# =============================================================================
# Pacing Configuration
# =============================================================================


class PacingConfig(BaseModel):
    """Submission spacing, retry, backoff and batch tightening constants."""

    max_attempts: int = Field(
        default=4,
        ge=1,
        le=20,
        description="Attempts per target before it is marked exhausted",
    )
    base_backoff_ms: int = Field(
        default=60_000,
        ge=0,
        description="Base of the exponential backoff (doubled per attempt)",
    )
    backoff_jitter: MsRange = Field(
        default_factory=lambda: MsRange.of(10_000, 30_000),
        description="Uniform jitter added to the exponential backoff",
    )
    hard_lockout_cooldown: MsRange = Field(
        default_factory=lambda: MsRange.of(600_000, 960_000),
        description="Cooldown after a hard lockout page (e.g. challenge code)",
    )
    retry_after_jitter: MsRange = Field(
        default_factory=lambda: MsRange.of(500, 2_500),
        description="Jitter added on top of a server Retry-After value",
    )
    gate_spacing: MsRange = Field(
        default_factory=lambda: MsRange.of(18_000, 28_000),
        description="Minimum spacing between two search submits",
    )
    gate_jitter: MsRange = Field(
        default_factory=lambda: MsRange.of(500, 1_500),
        description="Extra jitter added when the gate has to wait",
    )
    courtesy_pause: MsRange = Field(
        default_factory=lambda: MsRange.of(1_200, 2_000),
        description="Pause after every attempt, whatever its outcome",
    )
    between_targets: MsRange = Field(
        default_factory=lambda: MsRange.of(3_500, 6_000),
        description="Pause between two targets of the same batch",
    )
    batch_size: int = Field(
        default=5,
        ge=1,
        description="Initial number of targets per batch",
    )
    batch_size_floor: int = Field(
        default=3,
        ge=1,
        description="Batch size never shrinks below this",
    )
    between_batches: MsRange = Field(
        default_factory=lambda: MsRange.of(180_000, 300_000),
        description="Initial delay between batches",
    )
    post_block_cooldown: MsRange = Field(
        default_factory=lambda: MsRange.of(420_000, 660_000),
        description="Initial extra cooldown after a batch that saw a block",
    )
    between_batches_increment: MsRange = Field(
        default_factory=lambda: MsRange.of(60_000, 120_000),
        description="Added to the batch delay bounds each time a batch is blocked",
    )
    cooldown_increment: MsRange = Field(
        default_factory=lambda: MsRange.of(120_000, 180_000),
        description="Added to the cooldown bounds each time a batch is blocked",
    )

    @model_validator(mode="after")
    def floor_lte_batch_size(self) -> "PacingConfig":
        """Ensure the floor does not exceed the starting batch size."""
        if self.batch_size_floor > self.batch_size:
            raise ValueError("batch_size_floor must be <= batch_size")
        return self


# =============================================================================
# Browser Configuration
# =============================================================================


class BrowserConfig(BaseModel):
    """Playwright session settings."""

    headless: bool = Field(
        default=False,
        description="Run the browser without a window",
    )
    slow_mo_ms: int = Field(
        default=80,
        ge=0,
        le=2000,
        description="Playwright slow motion per action",
    )
    stealth: bool = Field(
        default=True,
        description="Inject the stealth init script into the context",
    )
    user_data_dir: Path = Field(
        default=Path(".browser_profile"),
        description="Persistent profile directory (cookies survive runs)",
    )
    proxy: str | None = Field(
        default=None,
        description="Proxy server; falls back to HTTPS_PROXY / HTTP_PROXY",
    )
    user_agent: str | None = Field(
        default=None,
        description="Fixed user agent; randomized Chrome UA when unset",
    )
    viewport_width: int = Field(default=1280, ge=320)
    viewport_height: int = Field(default=900, ge=240)
    viewport_jitter_px: int = Field(
        default=32,
        ge=0,
        description="Random +/- adjustment of both viewport dimensions",
    )
    block_resource_types: list[str] = Field(
        default_factory=lambda: ["image", "media", "font", "stylesheet"],
        description="Resource types aborted to cut request count",
    )
    default_timeout_ms: int = Field(
        default=60_000,
        ge=1000,
        description="Default timeout for page operations",
    )


# =============================================================================
# Directory Service Configuration
# =============================================================================


class ServiceConfig(BaseModel):
    """Where the directory lives, how to drive it and how it signals blocks."""

    search_url: str = Field(
        default="https://apps.cpaaustralia.com.au/find-a-cpa/",
        description="Landing page holding the search form",
    )
    input_selector: str = Field(
        default='input[type="text"]:not([aria-hidden="true"])',
        description="Location text input",
    )
    suggestion_selectors: list[str] = Field(
        default_factory=lambda: [
            ".pac-item",
            '[role="listbox"] [role="option"]',
            ".MuiAutocomplete-option",
        ],
        description="Autocomplete suggestion selectors, tried in order",
    )
    submit_selector: str = Field(
        default="#initiateSearchBtn",
        description="Search button; clicking it is the counted request",
    )
    result_selector: str = Field(
        default="li.resultItem",
        description="One element per directory record",
    )
    navigation_timeout_ms: int = Field(default=60_000, ge=1000)
    suggestion_timeout_ms: int = Field(default=8_000, ge=0)
    results_timeout_ms: int = Field(default=40_000, ge=1000)
    result_polls: int = Field(
        default=35,
        ge=1,
        description="Block probes while waiting for results",
    )
    result_poll_interval_ms: int = Field(default=900, ge=50)
    probe_interval_ms: int = Field(
        default=1_500,
        ge=100,
        description="Background content probe interval during an attempt",
    )
    scroll_rounds: int = Field(
        default=5,
        ge=0,
        description="Max scrolls to trigger lazy loading of more results",
    )
    scroll_pause: MsRange = Field(default_factory=lambda: MsRange.of(900, 1_400))
    block_markers: list[str] = Field(
        default_factory=lambda: ["error 1015", "rate limited"],
        description="Lowercase page text that means the service throttled us",
    )
    hard_lockout_markers: list[str] = Field(
        default_factory=lambda: ["1015"],
        description="Markers of the long-form lockout, checked once blocked",
    )
    block_statuses: list[int] = Field(
        default_factory=lambda: [429, 403],
        description="Response statuses treated as block evidence",
    )


# =============================================================================
# Output / Logging Configuration
# =============================================================================


class OutputConfig(BaseModel):
    """Per-target CSV output settings."""

    directory: Path = Field(
        default=Path("output"),
        description="Directory receiving one CSV per target",
    )


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    file: Path | None = Field(
        default=Path("logs/dirsweep.log"),
        description="Log file path",
    )
    json_format: bool = Field(
        default=True,
        description="Use JSON format for file logs",
    )
    rich_console: bool = Field(
        default=True,
        description="Use Rich for console output",
    )


# =============================================================================
# Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """Root application configuration.

    This is the main configuration object loaded from app.yaml.
    """

    pacing: PacingConfig = Field(default_factory=PacingConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    service: ServiceConfig = Field(default_factory=ServiceConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    targets: list[str] = Field(
        default_factory=list,
        description="Ordered target names (locations) to search",
    )

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        self.output.directory.mkdir(parents=True, exist_ok=True)
        if self.logging.file:
            self.logging.file.parent.mkdir(parents=True, exist_ok=True)
