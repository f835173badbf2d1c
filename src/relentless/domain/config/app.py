"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from relentless.domain.config.http import HttpConfig
from relentless.domain.config.retry import RetryConfig


class AppConfig(BaseModel):
    """Main application configuration.

    Root model aggregating all configuration sections. Validation is performed
    at load time to fail fast on configuration errors.

    Attributes:
        retry: Retry policy configuration
        http: HTTP fetch configuration
    """

    retry: RetryConfig = Field(default_factory=RetryConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
        json_schema_extra={
            "example": {
                "retry": {
                    "max_attempts": 5,
                    "base_delay": 0.5,
                    "growth_factor": 2.0,
                    "max_delay": 30.0,
                    "start_index": 1,
                },
                "http": {
                    "timeout": 10.0,
                    "headers": {"Accept": "application/json"},
                },
            }
        },
    )
