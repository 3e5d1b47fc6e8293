"""Orchestrator Agent — coordinates the two-pass strategy pipeline."""

from __future__ import annotations

import logging
from typing import Callable

import httpx

from hroas.agents.analysis.agent import WebsiteAnalysisAgent
from hroas.agents.follow_up.agent import FollowUpAgent
from hroas.agents.strategist.agent import StrategistAgent
from hroas.config import read_api_keys
from hroas.schemas.config import ServiceConfig
from hroas.schemas.pipeline import PipelineState
from hroas.schemas.strategy import (
    ContentStrategy,
    FollowUpExchange,
    StrategyRequest,
    StructuredStrategy,
    WebsiteAnalysis,
)
from hroas.shared.llm_client import ByteStream, ChatClient, DryRunClient
from hroas.shared.page_fetcher import fetch_page_text
from hroas.shared.progress import PipelineProgress
from hroas.shared.stream_decoder import DeltaCallback

logger = logging.getLogger(__name__)

ClientFactory = Callable[[ServiceConfig], tuple[ChatClient, ChatClient]]
"""Builds (analysis_client, strategy_client) for one request."""


def build_clients(config: ServiceConfig) -> tuple[ChatClient, ChatClient]:
    """Create both service clients from keys in the environment.

    Raises ``ConfigurationError`` if either key is missing.
    """
    analysis_key, strategy_key = read_api_keys(config)
    analysis = ChatClient(
        api_key=analysis_key,
        base_url=config.analysis_base_url,
        model=config.analysis_model,
        label="Analysis",
    )
    strategy = ChatClient(
        api_key=strategy_key,
        base_url=config.strategy_base_url,
        model=config.strategy_model,
        label="Strategy",
    )
    return analysis, strategy


def build_dry_run_clients(config: ServiceConfig) -> tuple[DryRunClient, DryRunClient]:
    return DryRunClient(label="Analysis"), DryRunClient(label="Strategy")


class OrchestratorAgent:
    """Coordinates one strategy submission.

    Pipeline flow:
        page fetch → analysis pass → strategy pass (streamed) → resolve

    The two passes are strictly sequential: the strategy prompt is built
    from the analysis output.  State for the submission lives in
    ``self.state``; create a new orchestrator per submission.
    """

    def __init__(
        self,
        analysis_client: ChatClient,
        strategy_client: ChatClient,
        config: ServiceConfig,
        request: StrategyRequest,
        *,
        fetch_pages: bool = True,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self.state = PipelineState(request=request)
        self.fetch_pages = fetch_pages
        self._http_client = http_client

        self.analysis_agent = WebsiteAnalysisAgent(
            analysis_client,
            max_completion_tokens=config.analysis_max_completion_tokens,
        )
        self.strategist = StrategistAgent(
            strategy_client,
            strategy_format=config.strategy_format,
            temperature=config.strategy_temperature,
        )
        self.follow_up_agent = FollowUpAgent(strategy_client, temperature=config.strategy_temperature)

    @classmethod
    def for_request(
        cls,
        config: ServiceConfig,
        request: StrategyRequest,
        *,
        dry_run: bool = False,
        client_factory: ClientFactory | None = None,
    ) -> "OrchestratorAgent":
        """Build clients (reading keys now) and an orchestrator for one request."""
        if dry_run:
            analysis, strategy = build_dry_run_clients(config)
        else:
            analysis, strategy = (client_factory or build_clients)(config)
        return cls(
            analysis, strategy, config, request,
            fetch_pages=config.fetch_page_content and not dry_run,
        )

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    async def fetch_page(self) -> str:
        """Fetch the target page text; ``""`` when disabled or unreachable."""
        if not self.fetch_pages:
            return ""
        self.state.page_content = await fetch_page_text(
            self.state.request.website_url,
            timeout=self.config.fetch_timeout,
            max_chars=self.config.max_page_chars,
            client=self._http_client,
        )
        return self.state.page_content

    async def analyze(self, progress: PipelineProgress | None = None) -> WebsiteAnalysis:
        """Step one: fetch the page and run the analysis pass."""
        request = self.state.request
        logger.info(
            "Analyzing website: %s Budget: %s Goal: %s",
            request.website_url, request.budget, request.goal,
        )

        step = "Fetching page"
        if progress:
            progress.start_step(step)
        content = await self.fetch_page()
        if progress:
            progress.finish_step(step, f"{len(content)} chars" if content else "no content, inferring from URL")

        step = self.analysis_agent.name
        if progress:
            progress.start_step(step)
        try:
            analysis = await self.analysis_agent.run(request, content)
        except Exception as exc:
            if progress:
                progress.fail_step(step, str(exc))
            raise
        if progress:
            progress.finish_step(step)

        self.state.analysis = analysis
        return analysis

    async def open_strategy_stream(self) -> ByteStream:
        """Step two, streaming: return the raw upstream event stream.

        Requires ``analyze()`` to have completed.
        """
        if self.state.analysis is None:
            raise RuntimeError("open_strategy_stream() called before analyze()")
        return await self.strategist.open_stream(self.state.analysis)

    async def run(
        self,
        *,
        stream: bool = True,
        progress: PipelineProgress | None = None,
        on_delta: DeltaCallback | None = None,
    ) -> StructuredStrategy | ContentStrategy:
        """Execute the full pipeline and return the resolved strategy."""
        self.state.loading = True
        self.state.error = ""
        try:
            analysis = await self.analyze(progress)

            step = self.strategist.name
            if progress:
                progress.start_step(step)
                received = 0

                def _on_delta(delta: str) -> None:
                    nonlocal received
                    received += len(delta)
                    progress.update_step(step, f"{received:,} chars received")
                    if on_delta:
                        on_delta(delta)
            else:
                _on_delta = on_delta

            try:
                result = await self.strategist.run(analysis, stream=stream, on_delta=_on_delta)
            except Exception as exc:
                if progress:
                    progress.fail_step(step, str(exc))
                raise
            if progress:
                progress.finish_step(step, result.kind)

            self.state.result = result
            return result
        except Exception as exc:
            self.state.error = str(exc) or "An unexpected error occurred"
            logger.error("Strategy pipeline failed: %s", exc)
            raise
        finally:
            self.state.loading = False

    async def ask(self, question: str) -> FollowUpExchange:
        """Answer a follow-up question about the current strategy."""
        if self.state.result is None:
            raise ValueError("No strategy has been generated yet")
        exchange = await self.follow_up_agent.run(question, self.state.result)
        self.state.follow_ups.append(exchange)
        return exchange
