"""
Infrastructure configuration for external services.
"""

from pydantic import ConfigDict, Field, field_validator, AliasChoices
from pydantic_settings import BaseSettings


class PrometheusConfig(BaseSettings):
    """Prometheus configuration."""
    url: str = Field(default="http://prometheus.monitoring.svc:9090", validation_alias=AliasChoices("PROMETHEUS_URL", "url"))
    timeout: int = Field(default=10, validation_alias=AliasChoices("PROMETHEUS_TIMEOUT", "timeout"))

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        if not v.startswith(('http://', 'https://')):
            raise ValueError('Prometheus URL must start with http:// or https://')
        return v.rstrip('/')

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


class ServerConfig(BaseSettings):
    """Scheduler extender HTTP server configuration."""
    port: int = Field(default=8888, validation_alias=AliasChoices("SERVER_PORT", "port"))
    host: str = Field(default="0.0.0.0", validation_alias=AliasChoices("SERVER_HOST", "host"))
    # Scheduler extenders report priorities in [0, 10]
    extender_max_score: int = Field(default=10, validation_alias=AliasChoices("EXTENDER_MAX_SCORE", "extender_max_score"))

    @field_validator('port')
    @classmethod
    def validate_port(cls, v):
        if v < 1024 or v > 65535:
            raise ValueError('Port must be between 1024 and 65535')
        return v

    @field_validator('extender_max_score')
    @classmethod
    def validate_max_score(cls, v):
        if v < 1:
            raise ValueError('EXTENDER_MAX_SCORE must be positive')
        return v

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
