"""Tests for follow-up questions about a generated strategy."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from conftest import make_text_response
from hroas.agents.follow_up.agent import FollowUpAgent
from hroas.agents.follow_up.prompts import FOLLOW_UP_SYSTEM_PROMPT
from hroas.schemas.strategy import ContentStrategy, resolve_strategy


class TestFollowUpAgent:
    @pytest.mark.asyncio
    async def test_answers_with_strategy_context(self, mock_chat_client, sample_strategy: dict) -> None:
        create = AsyncMock(return_value=make_text_response(" Shift 10% to X after week two. "))
        mock_chat_client._client.chat.completions.create = create

        exchange = await FollowUpAgent(mock_chat_client).run(
            "  When should I move budget?  ", resolve_strategy(sample_strategy),
        )

        assert exchange.question == "When should I move budget?"
        assert exchange.answer == "Shift 10% to X after week two."

        kwargs = create.call_args.kwargs
        assert kwargs["messages"][0]["content"] == FOLLOW_UP_SYSTEM_PROMPT
        user = kwargs["messages"][1]["content"]
        assert "## 1. Google Search Ads ($175)" in user
        assert user.endswith("When should I move budget?")
        assert kwargs["temperature"] == 0.7

    @pytest.mark.asyncio
    async def test_content_strategy_passed_verbatim(self, mock_chat_client) -> None:
        create = AsyncMock(return_value=make_text_response("Yes."))
        mock_chat_client._client.chat.completions.create = create

        await FollowUpAgent(mock_chat_client).run("Is $175 enough?", ContentStrategy(content="# My plan"))
        assert "# My plan" in create.call_args.kwargs["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_empty_question_rejected(self, mock_chat_client) -> None:
        mock_chat_client._client.chat.completions.create = AsyncMock()
        with pytest.raises(ValueError, match="Please enter a question"):
            await FollowUpAgent(mock_chat_client).run("   ", ContentStrategy(content="x"))
        mock_chat_client._client.chat.completions.create.assert_not_called()
