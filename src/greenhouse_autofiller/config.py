"""Configuration management for Greenhouse Autofiller."""

from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application Configuration
    debug: bool = Field(False, description="Enable debug mode")
    log_level: str = Field("INFO", description="Logging level")

    # Browser Configuration
    browser_headless: bool = Field(True, description="Run browser in headless mode")
    browser_timeout: int = Field(30, description="Browser operation timeout in seconds")
    browser_user_data_dir: Optional[str] = Field(None, description="Browser user data directory")

    # Injection Configuration
    event_stagger_ms: int = Field(50, description="Delay between replayed input events in ms")
    rescan_delay_ms: int = Field(500, description="Delay before the framework re-scan pass in ms")
    framework_prop_prefixes: List[str] = Field(
        ["__reactProps$"],
        description="Property name prefixes of framework-internal handler registries"
    )

    # Resume Configuration
    resume_chunk_size: int = Field(512, description="Block size used when rebuilding resume bytes")
    resume_filename: str = Field("resume.pdf", description="File name given to the attached resume")
    highlight_border: str = Field("2px solid #22c55e", description="Border applied to the resume input")


# Global settings instance
settings = Settings()
