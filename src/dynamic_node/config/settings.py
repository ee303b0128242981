"""Configuration and settings management using pydantic-settings."""
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable loading."""

    model_config = SettingsConfigDict(
        env_prefix="DYNAMIC_NODE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Core service settings
    env: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Log level")
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Root log formatter",
    )

    # Injected node naming and layout
    node_name_suffix: str = Field(
        default="Dynamic Node",
        description="Suffix appended to injected node names",
    )
    default_position_x: float = Field(
        default=450,
        description="Canvas x of the first injected node without a position",
    )
    default_position_y: float = Field(
        default=300,
        description="Canvas y of injected nodes without a position",
    )
    position_step: float = Field(
        default=200,
        description="Horizontal spacing between injected nodes without a position",
    )

    # Sub-workflow behaviour
    batch_expressions: Literal["none", "first_item"] = Field(
        default="none",
        description="Expression handling in batch mode: leave to the engine or "
                    "evaluate against the first item before dispatch",
    )
    skeleton_path: Optional[str] = Field(
        default=None,
        description="Path to a custom sub-workflow skeleton JSON",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("position_step")
    @classmethod
    def validate_position_step(cls, v: float) -> float:
        """Validate that the layout step is positive."""
        if v <= 0:
            raise ValueError("position_step must be positive")
        return v


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None
