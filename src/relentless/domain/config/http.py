"""HTTP fetch configuration model."""

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field


class HttpConfig(BaseModel):
    """Configuration for HTTP requests made by `relentless fetch`.
    
    Attributes:
        timeout: Per-request timeout in seconds
        headers: Extra request headers
    """

    model_config = ConfigDict(extra="forbid")

    timeout: float = Field(10.0, gt=0.0)
    headers: Dict[str, str] = Field(default_factory=dict)
