# ==============================================================================
# Application Configuration
# ==============================================================================
"""
Configuration management using pydantic-settings.

All configuration is loaded from environment variables, with support for
.env files via python-dotenv.
"""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file before any settings are instantiated
load_dotenv()


class ClassifierSettings(BaseSettings):
    """Session classification settings."""

    model_config = SettingsConfigDict(env_prefix="CLASSIFIER_")

    inactivity_timeout_ms: int = Field(
        default=60_000,
        description="Idle time after the last event before a session counts as closed",
    )


class HeatmapSettings(BaseSettings):
    """Heatmap rasterization settings."""

    model_config = SettingsConfigDict(env_prefix="HEATMAP_")

    radius: int = Field(default=50, description="Kernel radius in raster pixels")
    blur: float = Field(default=0.75, description="Gaussian falloff blur factor")
    scale: float = Field(
        default=1.0, description="Raster size relative to the logical screen size"
    )
    bucket_size: int = Field(
        default=10, description="Grid cell in pixels used to group nearby clicks"
    )


class FlowGraphSettings(BaseSettings):
    """Flow graph edge styling settings."""

    model_config = SettingsConfigDict(env_prefix="FLOW_")

    min_width: float = Field(default=1.0, description="Minimum edge stroke width")
    max_width: float = Field(default=12.0, description="Edge stroke width at max count")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    # Nested settings
    classifier: ClassifierSettings = Field(default_factory=ClassifierSettings)
    heatmap: HeatmapSettings = Field(default_factory=HeatmapSettings)
    flow: FlowGraphSettings = Field(default_factory=FlowGraphSettings)

    # General settings
    log_level: str = Field(default="INFO", description="Logging level")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for subsequent calls.
    """
    return Settings()
