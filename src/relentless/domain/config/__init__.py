"""Configuration models with Pydantic validation."""

from relentless.domain.config.app import AppConfig
from relentless.domain.config.http import HttpConfig
from relentless.domain.config.retry import RetryConfig

__all__ = [
    "AppConfig",
    "HttpConfig",
    "RetryConfig",
]
