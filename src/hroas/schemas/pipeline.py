"""Per-submission pipeline state and the saved run report."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from hroas.schemas.strategy import (
    FollowUpExchange,
    StrategyRequest,
    StrategyResult,
    WebsiteAnalysis,
)


class PipelineState(BaseModel):
    """Tracks the data flowing through one analysis request.

    Owned by the orchestrator handling the submission; a new submission
    gets a new state.
    """

    request: StrategyRequest
    page_content: str = ""
    analysis: WebsiteAnalysis | None = None
    result: StrategyResult | None = None
    loading: bool = False
    error: str = ""
    follow_ups: list[FollowUpExchange] = []


class StrategyReport(BaseModel):
    """What ``hroas analyze`` writes to strategy.json."""

    generated_at: str = Field(default_factory=lambda: datetime.now().isoformat())
    request: StrategyRequest
    analysis: str = ""
    strategy: StrategyResult
    follow_ups: list[FollowUpExchange] = []
