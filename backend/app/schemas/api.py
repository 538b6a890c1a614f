"""
Generic API schemas — health, event payloads, digest run results.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str
    version: str
    apis_configured: dict[str, bool]
    all_apis_ready: bool


class UserCreatedEvent(BaseModel):
    """Payload the auth service posts after a successful sign-up."""

    email: str
    name: str = ""
    country: Optional[str] = None
    investment_goals: Optional[str] = None
    risk_tolerance: Optional[str] = None
    preferred_industry: Optional[str] = None


class UserDigestResult(BaseModel):
    user_id: str
    email: str
    symbols: list[str] = Field(default_factory=list)
    news_source: Literal["company", "general"] = "general"
    article_count: int = 0
    sent: bool = False
    error: Optional[str] = None


class DigestRunResult(BaseModel):
    success: bool
    message: str
    users_processed: int = 0
    emails_sent: int = 0
    results: list[UserDigestResult] = Field(default_factory=list)


class PipelineResult(BaseModel):
    success: bool
    message: str
