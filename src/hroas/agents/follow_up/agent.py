"""Follow-up Agent — answers ad hoc questions about a strategy."""

from __future__ import annotations

import logging

from hroas.agents.base import BaseAgent
from hroas.agents.follow_up.prompts import FOLLOW_UP_SYSTEM_PROMPT, build_follow_up_prompt
from hroas.output.markdown import render_strategy_markdown
from hroas.schemas.strategy import ContentStrategy, FollowUpExchange, StructuredStrategy
from hroas.shared.llm_client import ChatClient

logger = logging.getLogger(__name__)


class FollowUpAgent(BaseAgent):
    """Single non-streaming completion grounded in the current strategy."""

    def __init__(self, client: ChatClient, *, temperature: float | None = 0.7) -> None:
        super().__init__(client)
        self.temperature = temperature

    @property
    def name(self) -> str:
        return "Follow-up Questions"

    def get_system_prompt(self) -> str:
        return FOLLOW_UP_SYSTEM_PROMPT

    async def run(
        self,
        question: str,
        strategy: StructuredStrategy | ContentStrategy,
    ) -> FollowUpExchange:
        question = question.strip()
        if not question:
            raise ValueError("Please enter a question")

        answer = await self.client.complete(
            system=self.get_system_prompt(),
            user_message=build_follow_up_prompt(render_strategy_markdown(strategy), question),
            temperature=self.temperature,
        )
        logger.info("Answered follow-up question (%d chars)", len(answer))
        return FollowUpExchange(question=question, answer=answer.strip())
