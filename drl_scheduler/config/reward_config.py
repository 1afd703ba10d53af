"""
Reward function configuration.
"""

from pydantic import ConfigDict, Field, model_validator, AliasChoices
from pydantic_settings import BaseSettings


class RewardConfig(BaseSettings):
    """Reward function configuration."""

    # Component weights (must sum to 1.0)
    cluster_balance_weight: float = Field(default=0.5, validation_alias=AliasChoices("REWARD_CLUSTER_BALANCE_WEIGHT", "cluster_balance_weight"))
    node_balance_weight: float = Field(default=0.3, validation_alias=AliasChoices("REWARD_NODE_BALANCE_WEIGHT", "node_balance_weight"))
    history_weight: float = Field(default=0.2, validation_alias=AliasChoices("REWARD_HISTORY_WEIGHT", "history_weight"))

    # Per (service, role) history bound; 0 keeps every reward
    max_history: int = Field(default=0, validation_alias=AliasChoices("REWARD_MAX_HISTORY", "max_history"))

    @model_validator(mode='after')
    def validate_weights_sum(self):
        total = self.cluster_balance_weight + self.node_balance_weight + self.history_weight
        if abs(total - 1.0) > 0.01:
            raise ValueError('Reward weights must sum to 1.0 (cluster balance + node balance + history).')
        if self.max_history < 0:
            raise ValueError('REWARD_MAX_HISTORY must be >= 0')
        return self

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
