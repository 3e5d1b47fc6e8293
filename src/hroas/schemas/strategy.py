"""Pydantic models for strategy requests and results.

Wire names are camelCase (``websiteUrl``, ``predictedMetrics``); Python
attributes are snake_case.  Both are accepted on input.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, field_validator

from hroas.shared.errors import StrategyParseError


def _none_to_zero(v: object) -> object:
    return 0.0 if v is None else v


# A predicted metric is a number in the JSON variant and a human-readable
# range ("25 - 44", "~7.0%") in the content variant.
Metric = Annotated[Union[float, str], BeforeValidator(_none_to_zero)]


class StrategyRequest(BaseModel):
    """One user submission."""

    model_config = ConfigDict(populate_by_name=True)

    website_url: str = Field(..., alias="websiteUrl")
    budget: float = Field(..., gt=0)
    goal: str

    @field_validator("website_url", "goal")
    @classmethod
    def strip_required_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v


class PredictedMetrics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    daily_budget: Metric = Field(0.0, alias="dailyBudget")
    average_cpc: Metric = Field(0.0, alias="averageCPC")
    clicks: Metric = 0.0
    conversion_rate: Metric = Field(0.0, alias="conversionRate")
    conversions: Metric = 0.0
    cost_per_acquisition: Metric = Field(0.0, alias="costPerAcquisition")


class ChannelPlan(BaseModel):
    """Budget allocation and narrative for a single advertising channel."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    allocation: float = 0.0
    percentage: float = 0.0
    strategy: str = ""
    predicted_metrics: PredictedMetrics = Field(default_factory=PredictedMetrics, alias="predictedMetrics")
    # Older replies carry a ROAS estimate and a "reasoning" narrative instead.
    expected_roas: float | None = Field(None, alias="expectedROAS")
    reasoning: str = ""

    @field_validator("allocation", "percentage", mode="before")
    @classmethod
    def coerce_none(cls, v: object) -> object:
        return _none_to_zero(v)

    @field_validator("percentage")
    @classmethod
    def clamp_percentage(cls, v: float) -> float:
        return min(max(v, 0.0), 100.0)

    @field_validator("strategy", "reasoning", mode="before")
    @classmethod
    def coerce_none_to_empty(cls, v: object) -> object:
        return "" if v is None else v

    @property
    def narrative(self) -> str:
        """The channel strategy text, falling back to ``reasoning``."""
        return self.strategy or self.reasoning


class TotalPredictedResults(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_clicks: Metric = Field(0.0, alias="totalClicks")
    total_conversions: Metric = Field(0.0, alias="totalConversions")
    blended_cpa: Metric = Field(0.0, alias="blendedCPA")
    summary: str = ""


class ExpectedResults(BaseModel):
    """Revenue projection returned by the ROAS-oriented strategy shape."""

    model_config = ConfigDict(populate_by_name=True)

    projected_revenue: Metric = Field(0.0, alias="projectedRevenue")
    projected_roas: Metric = Field(0.0, alias="projectedROAS")
    timeframe: str = ""

    @field_validator("timeframe", mode="before")
    @classmethod
    def coerce_none_to_empty(cls, v: object) -> object:
        return "" if v is None else v


class StructuredStrategy(BaseModel):
    """Strategy returned as a flat JSON object."""

    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["structured"] = "structured"
    website_analysis: str = Field("", alias="websiteAnalysis")
    strategic_approach: str = Field("", alias="strategicApproach")
    overall_strategy: str = Field("", alias="overallStrategy")
    channels: list[ChannelPlan] = []
    total_predicted_results: TotalPredictedResults = Field(
        default_factory=TotalPredictedResults, alias="totalPredictedResults",
    )
    expected_results: ExpectedResults | None = Field(None, alias="expectedResults")

    @field_validator("website_analysis", "strategic_approach", "overall_strategy", mode="before")
    @classmethod
    def coerce_none_to_empty(cls, v: object) -> object:
        return "" if v is None else v

    def allocation_total(self) -> float:
        return sum(c.allocation for c in self.channels)

    def allocation_drift(self, budget: float) -> float:
        """Difference between allocated spend and the requested budget.

        The model is asked to allocate the whole budget but nothing enforces
        it; callers decide what drift is worth surfacing.
        """
        return self.allocation_total() - budget


class ContentStrategy(BaseModel):
    """Strategy returned as a single pre-rendered markdown-like string."""

    kind: Literal["content"] = "content"
    content: str


StrategyResult = Annotated[
    Union[StructuredStrategy, ContentStrategy],
    Field(discriminator="kind"),
]

_STRUCTURED_KEYS = {
    "channels", "websiteAnalysis", "website_analysis", "strategicApproach",
    "strategic_approach", "overallStrategy", "overall_strategy",
    "totalPredictedResults", "total_predicted_results",
    "expectedResults", "expected_results",
}


def resolve_strategy(payload: Any) -> StructuredStrategy | ContentStrategy:
    """Pick the StrategyResult branch for a parsed AI payload.

    Raises ``StrategyParseError`` when the payload matches neither shape.
    """
    if not isinstance(payload, dict):
        raise StrategyParseError(
            f"Strategy payload must be a JSON object, got {type(payload).__name__}"
        )

    kind = payload.get("kind")
    if kind is None:
        if "channels" not in payload and isinstance(payload.get("content"), str):
            kind = "content"
        elif _STRUCTURED_KEYS & payload.keys():
            kind = "structured"
        else:
            raise StrategyParseError(
                "Strategy payload has neither 'channels' nor 'content' "
                f"(keys: {sorted(payload)})"
            )

    try:
        if kind == "content":
            return ContentStrategy(content=payload["content"])
        if kind == "structured":
            return StructuredStrategy.model_validate(payload)
    except (KeyError, ValidationError) as exc:
        raise StrategyParseError(f"Invalid {kind} strategy payload: {exc}") from exc
    raise StrategyParseError(f"Unknown strategy kind: {kind!r}")


class WebsiteAnalysis(BaseModel):
    """Output of the analysis pass — the only input the strategy pass accepts."""

    request: StrategyRequest
    analysis: str
    used_page_content: bool = False


class FollowUpRequest(BaseModel):
    question: str
    strategy: StrategyResult

    @field_validator("question")
    @classmethod
    def strip_question(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please enter a question")
        return v


class FollowUpExchange(BaseModel):
    question: str
    answer: str
