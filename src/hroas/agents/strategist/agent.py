"""Strategist Agent — turns a website analysis into a budgeted strategy."""

from __future__ import annotations

import logging
from typing import Literal

from hroas.agents.base import BaseAgent, extract_json_payload
from hroas.agents.strategist.prompts import (
    CONTENT_SYSTEM_PROMPT,
    JSON_SYSTEM_PROMPT,
    build_strategy_prompt,
)
from hroas.schemas.strategy import (
    ContentStrategy,
    StructuredStrategy,
    WebsiteAnalysis,
    resolve_strategy,
)
from hroas.shared.llm_client import ByteStream, ChatClient
from hroas.shared.stream_decoder import DeltaCallback, decode_event_stream_async

logger = logging.getLogger(__name__)


class StrategistAgent(BaseAgent):
    """Second pass: channel allocation, predicted metrics and narrative.

    ``strategy_format`` selects the reply shape the model is asked for —
    a flat JSON object (``"json"``) or a single markdown ``content`` string
    (``"content"``).  Either way the reply is resolved into a
    ``StrategyResult`` by ``parse_output``.
    """

    def __init__(
        self,
        client: ChatClient,
        *,
        strategy_format: Literal["json", "content"] = "json",
        temperature: float | None = 0.7,
    ) -> None:
        super().__init__(client)
        self.strategy_format = strategy_format
        self.temperature = temperature

    @property
    def name(self) -> str:
        return "Strategy Generator"

    def get_system_prompt(self) -> str:
        return CONTENT_SYSTEM_PROMPT if self.strategy_format == "content" else JSON_SYSTEM_PROMPT

    def build_user_message(self, analysis: WebsiteAnalysis) -> str:
        return build_strategy_prompt(analysis.analysis, analysis.request.budget, analysis.request.goal)

    def parse_output(self, raw_text: str) -> StructuredStrategy | ContentStrategy:
        """Extract the (optionally fenced) JSON payload and resolve its shape."""
        return resolve_strategy(extract_json_payload(raw_text))

    async def open_stream(self, analysis: WebsiteAnalysis) -> ByteStream:
        """Start the streaming strategy request and return the raw event stream."""
        return await self.client.open_stream(
            system=self.get_system_prompt(),
            user_message=self.build_user_message(analysis),
            temperature=self.temperature,
        )

    async def run(
        self,
        analysis: WebsiteAnalysis,
        *,
        stream: bool = True,
        on_delta: DeltaCallback | None = None,
    ) -> StructuredStrategy | ContentStrategy:
        if stream:
            async with await self.open_stream(analysis) as body:
                raw = await decode_event_stream_async(body.iter_bytes(), on_delta=on_delta)
        else:
            raw = await self.client.complete(
                system=self.get_system_prompt(),
                user_message=self.build_user_message(analysis),
                temperature=self.temperature,
            )

        logger.debug("Agent %s raw output (%d chars):\n%s", self.name, len(raw), raw[:500])
        result = self.parse_output(raw)

        if isinstance(result, StructuredStrategy) and result.channels:
            drift = result.allocation_drift(analysis.request.budget)
            if abs(drift) > max(1.0, 0.05 * analysis.request.budget):
                logger.warning(
                    "Channel allocations total %.2f for a budget of %.2f",
                    result.allocation_total(), analysis.request.budget,
                )
        return result
