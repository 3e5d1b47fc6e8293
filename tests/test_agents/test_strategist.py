"""Tests for the strategy pass and fenced-JSON extraction."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest

from conftest import attach_stream, make_text_response
from hroas.agents.base import extract_json_payload
from hroas.agents.strategist.agent import StrategistAgent
from hroas.agents.strategist.prompts import CONTENT_SYSTEM_PROMPT, JSON_SYSTEM_PROMPT
from hroas.schemas.strategy import (
    ContentStrategy,
    StrategyRequest,
    StructuredStrategy,
    WebsiteAnalysis,
)
from hroas.shared.errors import StrategyParseError
from hroas.shared.llm_client import to_event_stream

ANALYSIS = WebsiteAnalysis(
    request=StrategyRequest(website_url="outrank.so", budget=250, goal="More trial sign-ups"),
    analysis="B2B SaaS automating SEO content for small teams.",
    used_page_content=True,
)


class TestExtractJsonPayload:
    def test_fenced_with_prefix_and_suffix(self) -> None:
        assert extract_json_payload('prefix ```json\n{"a":1}\n``` suffix') == {"a": 1}

    def test_untagged_fence(self) -> None:
        assert extract_json_payload('```\n{"a": [1, 2]}\n```') == {"a": [1, 2]}

    def test_space_before_fence_tag(self) -> None:
        assert extract_json_payload('``` json\n{"a": 1}\n```') == {"a": 1}

    def test_no_fence_parses_trimmed_text(self) -> None:
        assert extract_json_payload('\n  {"content": "x"}  \n') == {"content": "x"}

    def test_first_fence_wins(self) -> None:
        text = '```json\n{"a": 1}\n```\nand\n```json\n{"a": 2}\n```'
        assert extract_json_payload(text) == {"a": 1}

    def test_invalid_json(self) -> None:
        with pytest.raises(StrategyParseError, match="Failed to parse strategy JSON"):
            extract_json_payload("Here is your strategy: {channels: ...}")

    def test_unterminated_fence_falls_back_to_whole_text(self) -> None:
        with pytest.raises(StrategyParseError):
            extract_json_payload('```json\n{"a": 1}')


class TestStrategistPrompts:
    def test_json_prompt_names_every_field(self) -> None:
        for field in (
            "websiteAnalysis", "strategicApproach", "overallStrategy", "channels",
            "allocation", "percentage", "predictedMetrics", "dailyBudget", "averageCPC",
            "clicks", "conversionRate", "conversions", "costPerAcquisition",
            "totalPredictedResults", "blendedCPA",
        ):
            assert field in JSON_SYSTEM_PROMPT

    def test_format_selects_system_prompt(self, mock_chat_client) -> None:
        assert StrategistAgent(mock_chat_client).get_system_prompt() == JSON_SYSTEM_PROMPT
        agent = StrategistAgent(mock_chat_client, strategy_format="content")
        assert agent.get_system_prompt() == CONTENT_SYSTEM_PROMPT

    def test_user_message_built_from_analysis(self, mock_chat_client) -> None:
        message = StrategistAgent(mock_chat_client).build_user_message(ANALYSIS)
        assert ANALYSIS.analysis in message
        assert "Budget: $250/month" in message
        assert "Marketing Goal: More trial sign-ups" in message


class TestStrategistAgent:
    @pytest.mark.asyncio
    async def test_streamed_structured(self, mock_chat_client, sample_strategy: dict) -> None:
        reply = "```json\n" + json.dumps(sample_strategy) + "\n```"
        response = attach_stream(mock_chat_client, to_event_stream(reply, piece=17, chunk_size=23))

        deltas: list[str] = []
        result = await StrategistAgent(mock_chat_client).run(ANALYSIS, on_delta=deltas.append)

        assert isinstance(result, StructuredStrategy)
        assert result.channels[0].allocation == 175
        assert "".join(deltas) == reply
        assert response.closed

        kwargs = mock_chat_client._client.chat.completions.with_streaming_response.create.call_args.kwargs
        assert kwargs["stream"] is True
        assert kwargs["temperature"] == 0.7

    @pytest.mark.asyncio
    async def test_streamed_content(self, mock_chat_client) -> None:
        reply = json.dumps({"content": "# Plan\n\n| A | B |\n|---|---|\n| 1 | 2 |"})
        attach_stream(mock_chat_client, to_event_stream(reply))

        result = await StrategistAgent(mock_chat_client, strategy_format="content").run(ANALYSIS)
        assert isinstance(result, ContentStrategy)
        assert result.content.startswith("# Plan")

    @pytest.mark.asyncio
    async def test_non_streamed(self, mock_chat_client, sample_strategy: dict) -> None:
        create = AsyncMock(return_value=make_text_response(json.dumps(sample_strategy)))
        mock_chat_client._client.chat.completions.create = create

        result = await StrategistAgent(mock_chat_client, temperature=0.2).run(ANALYSIS, stream=False)

        assert isinstance(result, StructuredStrategy)
        assert create.call_args.kwargs["temperature"] == 0.2
        assert "stream" not in create.call_args.kwargs

    @pytest.mark.asyncio
    async def test_unparsable_reply(self, mock_chat_client) -> None:
        attach_stream(mock_chat_client, to_event_stream("Sorry, I can't help with that."))
        with pytest.raises(StrategyParseError):
            await StrategistAgent(mock_chat_client).run(ANALYSIS)

    @pytest.mark.asyncio
    async def test_allocation_drift_logged(self, mock_chat_client, sample_strategy: dict, caplog) -> None:
        sample_strategy["channels"][0]["allocation"] = 400
        attach_stream(mock_chat_client, to_event_stream(json.dumps(sample_strategy)))

        with caplog.at_level("WARNING", logger="hroas.agents.strategist.agent"):
            result = await StrategistAgent(mock_chat_client).run(ANALYSIS)

        assert result.allocation_total() == 475
        assert "Channel allocations total 475.00 for a budget of 250.00" in caplog.text
