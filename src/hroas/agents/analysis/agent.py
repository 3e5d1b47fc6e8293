"""Website Analysis Agent — characterizes the business behind a URL."""

from __future__ import annotations

import logging

from hroas.agents.analysis.prompts import ANALYSIS_SYSTEM_PROMPT, build_analysis_prompt
from hroas.agents.base import BaseAgent
from hroas.schemas.strategy import StrategyRequest, WebsiteAnalysis
from hroas.shared.llm_client import ChatClient, TokensCallback

logger = logging.getLogger(__name__)


class WebsiteAnalysisAgent(BaseAgent):
    """First pass: business, audience and goal alignment.

    Output is free text wrapped in ``WebsiteAnalysis`` so the strategy pass
    can only be started from a finished analysis.
    """

    def __init__(self, client: ChatClient, *, max_completion_tokens: int | None = 1000) -> None:
        super().__init__(client)
        self.max_completion_tokens = max_completion_tokens

    @property
    def name(self) -> str:
        return "Website Analysis"

    def get_system_prompt(self) -> str:
        return ANALYSIS_SYSTEM_PROMPT

    async def run(
        self,
        request: StrategyRequest,
        page_content: str = "",
        *,
        on_tokens: TokensCallback | None = None,
    ) -> WebsiteAnalysis:
        user_message = build_analysis_prompt(
            request.website_url, request.budget, request.goal, page_content,
        )
        text = await self.client.complete(
            system=self.get_system_prompt(),
            user_message=user_message,
            max_completion_tokens=self.max_completion_tokens,
            on_tokens=on_tokens,
        )
        logger.debug("Agent %s output:\n%s", self.name, text[:500])
        return WebsiteAnalysis(
            request=request,
            analysis=text.strip(),
            used_page_content=bool(page_content),
        )
