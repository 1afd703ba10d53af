"""
DQN-specific configuration.
"""

from typing import List, Optional
from pydantic import ConfigDict, Field, field_validator, AliasChoices
from pydantic_settings import BaseSettings


class DQNConfig(BaseSettings):
    """DQN algorithm configuration."""

    # Architecture
    hidden_dims_str: str = Field(default="64,32", validation_alias=AliasChoices("DQN_HIDDEN_DIMS", "hidden_dims_str"))
    feature_dim: int = Field(default=8, validation_alias=AliasChoices("DQN_FEATURE_DIM", "feature_dim"))

    # Exploration schedule
    epsilon_schedule: str = Field(default="exponential", validation_alias=AliasChoices("EPSILON_SCHEDULE", "epsilon_schedule"))
    epsilon_start: float = Field(default=1.0, validation_alias=AliasChoices("EPSILON_START", "epsilon_start"))
    epsilon_end: float = Field(default=0.1, validation_alias=AliasChoices("EPSILON_END", "epsilon_end"))
    epsilon_decay: float = Field(default=0.995, validation_alias=AliasChoices("EPSILON_DECAY", "epsilon_decay"))

    # Learning
    gamma: float = Field(default=0.95, validation_alias=AliasChoices("GAMMA", "gamma"))
    learning_rate: float = Field(default=0.0005, validation_alias=AliasChoices("LEARNING_RATE", "learning_rate"))
    target_strategy: str = Field(default="immediate", validation_alias=AliasChoices("TARGET_STRATEGY", "target_strategy"))

    # Memory and batching
    memory_capacity: int = Field(default=10000, validation_alias=AliasChoices("MEMORY_CAPACITY", "memory_capacity"))
    batch_size: int = Field(default=32, validation_alias=AliasChoices("BATCH_SIZE", "batch_size"))
    target_update_interval: int = Field(default=100, validation_alias=AliasChoices("TARGET_UPDATE_INTERVAL", "target_update_interval"))

    seed: Optional[int] = Field(default=None, validation_alias=AliasChoices("DQN_SEED", "seed"))

    @property
    def hidden_dims(self) -> List[int]:
        """Parse DQN hidden dimensions from string."""
        try:
            return [int(x.strip()) for x in self.hidden_dims_str.split(',') if x.strip()]
        except ValueError as e:
            raise ValueError(f"Invalid format for DQN_HIDDEN_DIMS: {self.hidden_dims_str}. Expected comma-separated integers.") from e

    @field_validator('epsilon_start', 'epsilon_end', 'epsilon_decay', 'gamma')
    @classmethod
    def validate_probability_range(cls, v):
        if v < 0.0 or v > 1.0:
            raise ValueError('Probability values must be between 0.0 and 1.0')
        return v

    @field_validator('memory_capacity', 'batch_size', 'target_update_interval', 'feature_dim')
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError('Value must be a positive integer')
        return v

    @field_validator('epsilon_schedule')
    @classmethod
    def validate_schedule(cls, v):
        if v not in ('exponential', 'linear'):
            raise ValueError("EPSILON_SCHEDULE must be 'exponential' or 'linear'")
        return v

    @field_validator('target_strategy')
    @classmethod
    def validate_target_strategy(cls, v):
        if v not in ('immediate', 'bootstrapped'):
            raise ValueError("TARGET_STRATEGY must be 'immediate' or 'bootstrapped'")
        return v

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
