"""Configuration schema — validates hroas.yml."""

from typing import Literal

from pydantic import BaseModel, Field, model_validator


class ServiceConfig(BaseModel):
    """Settings for the two AI services and the page fetcher.

    API keys are never stored here; only the names of the environment
    variables that hold them.  Keys are looked up at request time.
    """

    # Analysis pass (business / audience characterization)
    analysis_base_url: str = "https://api.openai.com/v1"
    analysis_model: str = "gpt-5-mini"
    analysis_api_key_env: str = "OPENAI_API_KEY"
    analysis_max_completion_tokens: int = Field(1000, gt=0)

    # Strategy pass (budget allocation + predicted metrics)
    strategy_base_url: str = "https://ai.gateway.lovable.dev/v1"
    strategy_model: str = "google/gemini-2.5-flash"
    strategy_api_key_env: str = "AI_GATEWAY_API_KEY"
    strategy_temperature: float = Field(0.7, ge=0.0, le=2.0)
    strategy_format: Literal["json", "content"] = "json"

    # Page fetcher
    fetch_page_content: bool = True
    fetch_timeout: float = Field(5.0, gt=0)
    max_page_chars: int = Field(3000, ge=500, le=20_000)

    # Output
    output_directory: str = "./output"

    @model_validator(mode="after")
    def check_key_env_names(self) -> "ServiceConfig":
        if not self.analysis_api_key_env or not self.strategy_api_key_env:
            raise ValueError("API key environment variable names must not be empty")
        return self
