"""
Prompt evaluation models - side-by-side comparison of two system prompts.
"""

from datetime import datetime
from typing import Literal, Optional
from pydantic import Field

from .chat import CamelModel, utc_now


class EvalCompareRequest(CamelModel):
    user_message: Optional[str] = None
    prompt_a: Optional[str] = None
    prompt_b: Optional[str] = None


class EvalRateRequest(CamelModel):
    result_id: Optional[str] = None
    rating: Optional[str] = None


class EvalResult(CamelModel):
    """Outcome of one comparison, optionally rated by its owner."""
    id: str
    user_id: str
    user_message: str
    prompt_a: str
    prompt_b: str
    response_a: str
    response_b: str
    latency_a: int
    latency_b: int
    tokens_a: int
    tokens_b: int
    rating: Optional[Literal["A", "B"]] = None
    timestamp: datetime = Field(default_factory=utc_now)
