"""Configuration management for domscribe."""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DiffMode(str, Enum):
    """How structural mutations are rendered in the export."""
    LINE = "line"  # Line-set diff of the parent before/after HTML
    ELEMENT = "element"  # Whole added/removed elements only


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DOMSCRIBE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Logging
    log_level: str = Field("INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    log_json: bool = Field(False, description="Render logs as JSON")

    # Capture timing
    batch_window_ms: int = Field(50, description="Micro-batch window for DOM mutations")
    input_debounce_ms: int = Field(100, description="Debounce window for input events")
    scroll_throttle_ms: int = Field(200, description="Throttle window for scroll events")
    capture_scroll_events: bool = Field(False, description="Record scroll positions")

    # Buffering and session limits
    buffer_flush_interval_ms: int = Field(500, description="Periodic buffer flush interval")
    max_events_in_memory: int = Field(500, description="Buffer size that forces a flush")
    max_events_per_session: int = Field(50000, ge=1, description="Event ceiling before auto-stop")
    session_auto_stop_hours: float = Field(2.0, description="Duration ceiling before auto-stop")
    session_check_interval_ms: int = Field(60000, description="How often the duration ceiling is checked")

    # Snapshots
    max_dom_fragment_size: int = Field(2000, description="Max characters of a captured fragment")
    max_mutation_nodes: int = Field(10, description="Max node fragments kept per mutation")
    include_parent_context: bool = Field(True, description="Capture parent before/after HTML")
    max_initial_html_size: int = Field(100 * 1024, description="Max page source characters, 0 = unlimited")

    # Export
    diff_mode: DiffMode = Field(DiffMode.LINE, description="Mutation diff granularity")
    export_max_fragment_length: int = Field(500, description="Max characters of a rendered fragment")
    include_reproduction_steps: bool = Field(True, description="Render the Reproduction Steps section")

    # Privacy
    warn_on_sensitive_domains: bool = Field(True, description="Warn when recording sensitive sites")


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
