"""Async wrapper around OpenAI-compatible chat-completion endpoints.

Both AI services (the analysis model and the strategy gateway) speak the
chat-completions protocol, so one client class serves both, configured with
a different base URL, key and model.  Requests are never retried: a failed
call fails the current strategy request.
"""

from __future__ import annotations

import json
import logging
from contextlib import AsyncExitStack
from types import TracebackType
from typing import Any, AsyncIterator, Callable

from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from hroas.shared.errors import UpstreamServiceError

logger = logging.getLogger(__name__)

TokensCallback = Callable[[int, int], None]
"""Called with (input_tokens, output_tokens) when a completion finishes."""


class ByteStream:
    """An open upstream event-stream response.

    Iterate ``iter_bytes()`` to receive the raw body; the underlying HTTP
    response is released when iteration ends or ``aclose()`` is called.
    """

    def __init__(self, response: Any, stack: AsyncExitStack) -> None:
        self._response = response
        self._stack = stack
        self._closed = False

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.iter_bytes():
                yield chunk
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if not self._closed:
            self._closed = True
            await self._stack.aclose()

    async def __aenter__(self) -> "ByteStream":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()


class ChatClient:
    """Thin async wrapper around the OpenAI SDK for one chat-completion service.

    Provides two methods:
    - ``complete`` — single request/response, returns the message text.
    - ``open_stream`` — streaming request, returns the raw event-stream body.
    """

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str | None = None,
        label: str = "AI",
    ) -> None:
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0)
        self.model = model
        self.label = label

    def _build_kwargs(
        self,
        system: str,
        user_message: str,
        temperature: float | None,
        max_completion_tokens: int | None,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user_message},
            ],
        }
        if temperature is not None:
            kwargs["temperature"] = temperature
        if max_completion_tokens is not None:
            kwargs["max_completion_tokens"] = max_completion_tokens
        return kwargs

    def _status_error(self, exc: APIStatusError) -> UpstreamServiceError:
        logger.error("%s API error: %s %s", self.label, exc.status_code, exc.message)
        return UpstreamServiceError(
            f"{self.label} API request failed: {exc.status_code}",
            status_code=exc.status_code,
        )

    def _connection_error(self, exc: APIConnectionError) -> UpstreamServiceError:
        logger.error("%s API connection error: %s", self.label, exc)
        return UpstreamServiceError(f"{self.label} API request failed: {exc}")

    async def complete(
        self,
        *,
        system: str,
        user_message: str,
        temperature: float | None = None,
        max_completion_tokens: int | None = None,
        on_tokens: TokensCallback | None = None,
    ) -> str:
        """Single non-streaming request; returns ``choices[0].message.content``."""
        kwargs = self._build_kwargs(system, user_message, temperature, max_completion_tokens)
        try:
            response = await self._client.chat.completions.create(**kwargs)
        except APIStatusError as exc:
            raise self._status_error(exc) from exc
        except APIConnectionError as exc:
            raise self._connection_error(exc) from exc

        choices = getattr(response, "choices", None)
        if not choices:
            raise UpstreamServiceError(f"{self.label} API returned no choices")

        usage = getattr(response, "usage", None)
        if on_tokens and usage:
            on_tokens(getattr(usage, "prompt_tokens", 0), getattr(usage, "completion_tokens", 0))
        return choices[0].message.content or ""

    async def open_stream(
        self,
        *,
        system: str,
        user_message: str,
        temperature: float | None = None,
        max_completion_tokens: int | None = None,
    ) -> ByteStream:
        """Start a streaming request and return its raw event-stream body.

        A non-success status raises here, before any byte is handed out, so
        callers can still answer with an error envelope.
        """
        kwargs = self._build_kwargs(system, user_message, temperature, max_completion_tokens)
        kwargs["stream"] = True

        stack = AsyncExitStack()
        try:
            response = await stack.enter_async_context(
                self._client.chat.completions.with_streaming_response.create(**kwargs)
            )
        except APIStatusError as exc:
            await stack.aclose()
            raise self._status_error(exc) from exc
        except APIConnectionError as exc:
            await stack.aclose()
            raise self._connection_error(exc) from exc
        return ByteStream(response, stack)


# ======================================================================
# Dry-run mock client (no API calls)
# ======================================================================

_DRY_RUN_ANALYSIS = (
    "outrank.so is an AI-powered platform that automates SEO content: it finds "
    "low-competition keywords, then writes and publishes optimized blog posts daily.\n\n"
    "Target audience: founders, marketers and SEO professionals at small B2B SaaS "
    "companies who want organic traffic without an in-house content team.\n\n"
    "Key selling points: hands-off daily publishing, keyword research included, "
    "direct CMS integration.\n\n"
    "Goal alignment: with a small budget the fastest path to more traffic is "
    "high-intent search plus a community channel where the audience already gathers."
)

_DRY_RUN_STRATEGY = {
    "websiteAnalysis": _DRY_RUN_ANALYSIS,
    "strategicApproach": (
        "Concentrate spend on the two highest-intent platforms instead of spreading "
        "a small budget thinly."
    ),
    "overallStrategy": (
        "Capture active searchers on Google and reach the marketing community on X "
        "with a 14-day test, then scale the channel with the lower CPA."
    ),
    "channels": [
        {
            "name": "Google Search Ads",
            "allocation": 175,
            "percentage": 70,
            "strategy": "Target long-tail, high-intent keywords such as \"ai seo automation tool\".",
            "predictedMetrics": {
                "dailyBudget": 12.5,
                "averageCPC": 5.5,
                "clicks": 32,
                "conversionRate": 7.0,
                "conversions": 2,
                "costPerAcquisition": 87.5,
            },
        },
        {
            "name": "X (Twitter) Ads",
            "allocation": 75,
            "percentage": 30,
            "strategy": "Follower look-alikes of major SEO accounts with a short video ad.",
            "predictedMetrics": {
                "dailyBudget": 5.36,
                "averageCPC": 0.65,
                "clicks": 115,
                "conversionRate": 3.0,
                "conversions": 3,
                "costPerAcquisition": 25,
            },
        },
    ],
    "totalPredictedResults": {
        "totalClicks": 147,
        "totalConversions": 5,
        "blendedCPA": 50,
        "summary": "Roughly 5 new trial sign-ups at a blended CPA near $50.",
    },
}

_DRY_RUN_CONTENT = """\
# Website & Goal Analysis

outrank.so automates **SEO content creation** for small SaaS teams.

## Budget Allocation

| Platform | Budget | Percentage |
|----------|--------|------------|
| Google Search Ads | $175.00 | 70% |
| X (Twitter) Ads | $75.00 | 30% |

---

## Total Predicted Results

- **Total Website Clicks:** 115 - 194
- **Total New Free Trial Sign-ups:** 5 - 8
- **Blended Cost Per Acquisition (CPA):** $31 - $50 per trial user
"""

_DRY_RUN_ANSWER = (
    "Start with **Google Search Ads**: it has the highest purchase intent. "
    "Move budget to X only once its CPA beats search for a full week."
)


def to_event_stream(text: str, *, piece: int = 24, chunk_size: int = 61) -> list[bytes]:
    """Encode ``text`` as chat-completion SSE chunks with awkward boundaries."""
    events = []
    for start in range(0, len(text), piece):
        delta = {"choices": [{"index": 0, "delta": {"content": text[start:start + piece]}}]}
        events.append(f"data: {json.dumps(delta)}\n\n")
    events.append(": keep-alive\n\n")
    events.append("data: [DONE]\n\n")
    body = "".join(events).encode()
    return [body[i:i + chunk_size] for i in range(0, len(body), chunk_size)]


class _CannedResponse:
    def __init__(self, chunks: list[bytes]) -> None:
        self._chunks = chunks

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            yield chunk


class DryRunClient:
    """Drop-in replacement for ChatClient that makes zero API calls.

    Picks a canned reply from the system prompt and, for streaming calls,
    serves it as a real event stream so the decoder path still runs.
    """

    def __init__(self, *, label: str = "Dry-run") -> None:
        self.model = "dry-run"
        self.label = label

    async def complete(
        self,
        *,
        system: str,
        user_message: str,
        temperature: float | None = None,
        max_completion_tokens: int | None = None,
        on_tokens: TokensCallback | None = None,
    ) -> str:
        return self._reply_for(system)

    async def open_stream(
        self,
        *,
        system: str,
        user_message: str,
        temperature: float | None = None,
        max_completion_tokens: int | None = None,
    ) -> ByteStream:
        chunks = to_event_stream(self._reply_for(system))
        return ByteStream(_CannedResponse(chunks), AsyncExitStack())

    @staticmethod
    def _reply_for(system: str) -> str:
        if "business analyst" in system:
            return _DRY_RUN_ANALYSIS
        if "follow-up" in system:
            return _DRY_RUN_ANSWER
        if '"content"' in system:
            return "```json\n" + json.dumps({"content": _DRY_RUN_CONTENT}) + "\n```"
        return "```json\n" + json.dumps(_DRY_RUN_STRATEGY, indent=2) + "\n```"
