"""Tests for the FastAPI app — services are mocked via the client factory."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from conftest import attach_stream, make_chat_client, make_status_error, make_text_response
from hroas.schemas.config import ServiceConfig
from hroas.server.app import create_app
from hroas.shared.llm_client import to_event_stream
from hroas.shared.stream_decoder import decode_event_stream

BODY = {"websiteUrl": "outrank.so", "budget": 250, "goal": "More trial sign-ups"}


@pytest.fixture
def services(sample_strategy: dict):
    """(analysis, strategy) mocked clients serving a structured strategy."""
    reply = "```json\n" + json.dumps(sample_strategy) + "\n```"
    analysis = make_chat_client("ChatGPT")
    analysis._client.chat.completions.create = AsyncMock(return_value=make_text_response("B2B SaaS."))
    strategy = make_chat_client("AI Gateway")
    attach_stream(strategy, to_event_stream(reply))
    strategy._client.chat.completions.create = AsyncMock(return_value=make_text_response("Keep search."))
    return analysis, strategy


@pytest.fixture
def client(services) -> TestClient:
    config = ServiceConfig(fetch_page_content=False)
    app = create_app(config, client_factory=lambda cfg: services)
    return TestClient(app)


@pytest.fixture
def dry_client() -> TestClient:
    return TestClient(create_app(dry_run=True))


class TestHealthAndCors:
    def test_root(self, dry_client: TestClient) -> None:
        assert dry_client.get("/").json() == {"message": "HigherROAS Strategy API online"}

    def test_preflight(self, dry_client: TestClient) -> None:
        resp = dry_client.options(
            "/analyze-website",
            headers={
                "Origin": "https://app.example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "authorization, x-client-info, apikey, content-type",
            },
        )
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"
        allowed = resp.headers["access-control-allow-headers"].lower()
        for header in ("authorization", "x-client-info", "apikey", "api-key", "content-type"):
            assert header in allowed


class TestAnalyzeWebsite:
    def test_restreams_upstream_bytes(self, client: TestClient, sample_strategy: dict) -> None:
        resp = client.post("/analyze-website", json=BODY)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/event-stream")
        assert resp.headers["cache-control"] == "no-cache"

        reply = "```json\n" + json.dumps(sample_strategy) + "\n```"
        assert resp.content == b"".join(to_event_stream(reply))
        assert decode_event_stream([resp.content]) == reply

    def test_missing_keys(self, no_api_keys) -> None:
        resp = TestClient(create_app()).post("/analyze-website", json=BODY)
        assert resp.status_code == 500
        assert resp.json() == {"error": "API keys are not configured"}

    def test_upstream_failure(self, client: TestClient, services) -> None:
        analysis, _ = services
        analysis._client.chat.completions.create = AsyncMock(side_effect=make_status_error(429))
        resp = client.post("/analyze-website", json=BODY)
        assert resp.status_code == 500
        assert resp.json() == {"error": "ChatGPT API request failed: 429"}

    @pytest.mark.parametrize(
        "body",
        [
            {"websiteUrl": "", "budget": 250, "goal": "g"},
            {"websiteUrl": "a.com", "budget": -1, "goal": "g"},
            {"websiteUrl": "a.com", "goal": "g"},
        ],
    )
    def test_invalid_body(self, dry_client: TestClient, body: dict) -> None:
        resp = dry_client.post("/analyze-website", json=body)
        assert resp.status_code == 400
        assert resp.json()["error"].startswith("Invalid request:")

    def test_dry_run_stream(self, dry_client: TestClient) -> None:
        resp = dry_client.post("/analyze-website", json=BODY)
        assert resp.status_code == 200
        assert '"channels"' in decode_event_stream([resp.content])


class TestGenerateStrategy:
    def test_returns_strategy_envelope(self, client: TestClient) -> None:
        resp = client.post("/generate-strategy", json=BODY)
        assert resp.status_code == 200
        strategy = resp.json()["strategy"]
        assert strategy["kind"] == "structured"
        assert strategy["channels"][0]["name"] == "Google Search Ads"
        assert strategy["channels"][0]["predictedMetrics"]["averageCPC"] == 5.5

    def test_parse_error(self, client: TestClient, services) -> None:
        _, strategy = services
        attach_stream(strategy, to_event_stream("not json at all"))
        resp = client.post("/generate-strategy", json=BODY)
        assert resp.status_code == 500
        assert resp.json()["error"].startswith("Failed to parse strategy JSON")


class TestAnswerFollowup:
    def test_answer(self, client: TestClient, sample_strategy: dict) -> None:
        sample_strategy["kind"] = "structured"
        resp = client.post("/answer-followup", json={"question": "Why search?", "strategy": sample_strategy})
        assert resp.status_code == 200
        assert resp.json() == {"answer": "Keep search."}

    def test_blank_question(self, client: TestClient) -> None:
        resp = client.post(
            "/answer-followup",
            json={"question": " ", "strategy": {"kind": "content", "content": "x"}},
        )
        assert resp.status_code == 400
        assert "Please enter a question" in resp.json()["error"]

    def test_dry_run(self, dry_client: TestClient) -> None:
        resp = dry_client.post(
            "/answer-followup",
            json={"question": "Where first?", "strategy": {"kind": "content", "content": "# Plan"}},
        )
        assert "Google Search Ads" in resp.json()["answer"]


class TestRendering:
    def test_render_blocks(self, dry_client: TestClient) -> None:
        resp = dry_client.post("/render-blocks", json={"content": "# Title\n\nSome **bold** text."})
        assert resp.json() == {
            "blocks": [
                {"type": "heading", "level": 1, "text": "Title"},
                {
                    "type": "paragraph",
                    "spans": [
                        {"text": "Some ", "bold": False},
                        {"text": "bold", "bold": True},
                        {"text": " text.", "bold": False},
                    ],
                },
            ]
        }

    def test_dashboard(self, dry_client: TestClient) -> None:
        resp = dry_client.post(
            "/dashboard",
            json={"strategy": {"kind": "content", "content": "# Plan"}, "request": BODY},
        )
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        assert "<h2>Plan</h2>" in resp.text
        assert "outrank.so" in resp.text
