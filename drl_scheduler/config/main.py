"""
Main configuration for the DRL scheduler.
Combines all component-specific configurations.
"""

from typing import Optional
from pydantic import ConfigDict, Field, AliasChoices
from pydantic_settings import BaseSettings

from .dqn_config import DQNConfig
from .reward_config import RewardConfig
from .infrastructure_config import PrometheusConfig, ServerConfig
from .scheduler_config import SchedulerConfig, LogLevel


class DRLSchedulerConfig(BaseSettings):
    """Main configuration class that combines all component configurations."""

    # === GLOBAL SETTINGS ===
    log_level: LogLevel = Field(default=LogLevel.INFO, validation_alias=AliasChoices("LOG_LEVEL", "log_level"))
    structured_logging: bool = Field(default=True, validation_alias=AliasChoices("STRUCTURED_LOGGING", "structured_logging"))

    # === COMPONENT CONFIGURATIONS ===
    # Not initialized with default_factory to allow proper env var loading
    dqn: DQNConfig = Field(default=None)
    reward: RewardConfig = Field(default=None)
    prometheus: PrometheusConfig = Field(default=None)
    server: ServerConfig = Field(default=None)
    scheduler: SchedulerConfig = Field(default=None)

    def __init__(self, **data):
        """Initialize with component configurations."""
        if data.get('dqn') is None:
            data['dqn'] = DQNConfig()
        if data.get('reward') is None:
            data['reward'] = RewardConfig()
        if data.get('prometheus') is None:
            data['prometheus'] = PrometheusConfig()
        if data.get('server') is None:
            data['server'] = ServerConfig()
        if data.get('scheduler') is None:
            data['scheduler'] = SchedulerConfig()

        super().__init__(**data)

    def validate_config(self) -> None:
        """Validate cross-component constraints."""
        if self.dqn.batch_size > self.dqn.memory_capacity:
            raise ValueError("BATCH_SIZE cannot exceed MEMORY_CAPACITY")

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_assignment=True,
        extra="ignore"
    )


def load_config() -> DRLSchedulerConfig:
    """
    Load and validate configuration from environment variables.

    Returns:
        DRLSchedulerConfig: Validated configuration object

    Raises:
        ConfigurationError: If configuration is invalid
    """
    from drl_scheduler.utils.exceptions import ConfigurationError

    try:
        config = DRLSchedulerConfig()
        config.validate_config()
        return config
    except Exception as e:
        raise ConfigurationError(f"Failed to load configuration: {e}") from e


# Global configuration instance
_config: Optional[DRLSchedulerConfig] = None


def get_config() -> DRLSchedulerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config
