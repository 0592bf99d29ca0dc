"""Pydantic configuration models for linkgrab."""

import re
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_BLOCKED_DOMAINS = ["bad1.example.com", "bad2.example.com", "bad4.example.com"]


class ExtractionConfig(BaseModel):
    """Configuration for per-frame link extraction."""

    script_timeout: float = Field(
        3.0,
        gt=0,
        description="Seconds allowed for each same-origin external script fetch",
    )
    fetch_external_scripts: bool = Field(
        True,
        description="Scan same-origin external scripts for embedded URLs",
    )
    max_script_fetches: int = Field(
        20,
        ge=0,
        description="Maximum external scripts fetched per frame",
    )
    max_concurrent_fetches: int = Field(
        6,
        ge=1,
        description="Maximum concurrent script fetches per frame",
    )
    include_frames: bool = Field(True, description="Collect links from nested frames")
    max_frames: int = Field(25, ge=1, description="Maximum frames collected per page")
    extra_noise_prefixes: list[str] = Field(
        default_factory=list,
        description="Additional literal URL prefixes treated as noise",
    )
    extra_noise_patterns: list[str] = Field(
        default_factory=list,
        description="Additional regular expressions treated as noise",
    )

    model_config = {"extra": "forbid"}

    @field_validator("extra_noise_patterns")
    @classmethod
    def _check_patterns(cls, value: list[str]) -> list[str]:
        for pattern in value:
            try:
                re.compile(pattern)
            except re.error as err:
                raise ValueError(f"Invalid noise pattern {pattern!r}: {err}") from err
        return value


class AggregationConfig(BaseModel):
    """Configuration for cross-frame aggregation."""

    frame_timeout: float = Field(
        3.0,
        gt=0,
        description="Seconds to wait for frame reports before finalizing with what arrived",
    )

    model_config = {"extra": "forbid"}


class ClassifyOptions(BaseModel):
    """Display toggles applied by the classification pipeline."""

    hide_duplicates: bool = Field(True, description="Hide links seen earlier in the list")
    hide_blocked_domains: bool = Field(True, description="Hide links on blocked domains")
    hide_same_origin: bool = Field(False, description="Hide links with the page's origin")
    group_by_domain: bool = Field(True, description="Sort links into domain groups")
    filter_text: str = Field("", description="Case-insensitive substring filter on href")

    model_config = {"extra": "forbid"}


class SettingsConfig(BaseModel):
    """User settings seeded into the settings store."""

    blocked_domains: list[str] = Field(
        default_factory=lambda: list(DEFAULT_BLOCKED_DOMAINS),
        description="Domains whose links (and subdomain links) are flagged blocked",
    )

    model_config = {"extra": "forbid"}

    @field_validator("blocked_domains")
    @classmethod
    def _lower_domains(cls, value: list[str]) -> list[str]:
        return [d.strip().lower() for d in value if d.strip()]


class NetworkConfig(BaseModel):
    """Configuration for HTTP client and network behavior."""

    proxy: Optional[str] = Field(None, description="HTTP/HTTPS proxy URL")
    user_agent: Optional[str] = Field(None, description="Custom User-Agent header")
    max_retries: int = Field(2, ge=0, description="Maximum retry attempts for the page fetch")
    read_timeout: int = Field(30, ge=1, description="Read timeout in seconds")

    model_config = {"extra": "forbid"}


class LinkGrabConfig(BaseModel):
    """
    Root configuration model for linkgrab.

    Example:
        config = LinkGrabConfig(
            aggregation=AggregationConfig(frame_timeout=5.0),
            display=ClassifyOptions(hide_same_origin=True),
        )

    YAML format:
        browser: false
        extraction:
          script_timeout: 2.5
        display:
          group_by_domain: true
        settings:
          blocked_domains:
            - doubleclick.net
    """

    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    aggregation: AggregationConfig = Field(default_factory=AggregationConfig)
    display: ClassifyOptions = Field(default_factory=ClassifyOptions)
    settings: SettingsConfig = Field(default_factory=SettingsConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)

    browser: bool = Field(False, description="Render the page with Playwright and read live frames")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "WARNING",
        description="Logging level",
    )
    log_file: Optional[Path] = Field(None, description="Log file path")

    model_config = {"extra": "forbid"}

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        import yaml

        return yaml.dump(self.model_dump(mode="json", exclude_none=True), default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "LinkGrabConfig":
        """Load config from YAML string."""
        import yaml

        data = yaml.safe_load(yaml_str) or {}
        return cls.model_validate(data)

    @classmethod
    def from_yaml_file(cls, path: Path) -> "LinkGrabConfig":
        """Load config from YAML file."""
        return cls.from_yaml(path.read_text())
