"""
Scheduler plugin configuration.
"""

from enum import Enum
from typing import Optional
from pydantic import ConfigDict, Field, field_validator, AliasChoices
from pydantic_settings import BaseSettings


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class SchedulerConfig(BaseSettings):
    """Scoring plugin behaviour."""

    plugin_name: str = Field(default="DRLScheduler", validation_alias=AliasChoices("PLUGIN_NAME", "plugin_name"))
    service_label: str = Field(default="servicename", validation_alias=AliasChoices("SERVICE_LABEL", "service_label"))
    role_label: str = Field(default="rolename", validation_alias=AliasChoices("ROLE_LABEL", "role_label"))

    # Added to the current maximum when exploration overrides the ranking
    exploration_bonus: float = Field(default=5.0, validation_alias=AliasChoices("EXPLORATION_BONUS", "exploration_bonus"))
    max_node_score: int = Field(default=100, validation_alias=AliasChoices("MAX_NODE_SCORE", "max_node_score"))

    degrade_on_prediction_error: bool = Field(default=True, validation_alias=AliasChoices("DEGRADE_ON_PREDICTION_ERROR", "degrade_on_prediction_error"))

    checkpoint_path: Optional[str] = Field(default=None, validation_alias=AliasChoices("CHECKPOINT_PATH", "checkpoint_path"))
    checkpoint_interval: int = Field(default=500, validation_alias=AliasChoices("CHECKPOINT_INTERVAL", "checkpoint_interval"))

    @field_validator('degrade_on_prediction_error', mode='before')
    @classmethod
    def validate_booleans(cls, v):
        """Parse string boolean values correctly."""
        if isinstance(v, str):
            return v.lower() in ('true', '1', 'yes', 'on')
        return bool(v)

    @field_validator('exploration_bonus')
    @classmethod
    def validate_bonus(cls, v):
        if v <= 0:
            raise ValueError('EXPLORATION_BONUS must be positive')
        return v

    @field_validator('max_node_score', 'checkpoint_interval')
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError('Value must be a positive integer')
        return v

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
