"""FastAPI app exposing the strategy pipeline to the browser dashboard."""

from __future__ import annotations

import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, StreamingResponse
from pydantic import BaseModel

from hroas.agents.follow_up.agent import FollowUpAgent
from hroas.agents.orchestrator.agent import (
    ClientFactory,
    OrchestratorAgent,
    build_clients,
    build_dry_run_clients,
)
from hroas.output.blocks import render_blocks
from hroas.output.dashboard import render_dashboard
from hroas.schemas.config import ServiceConfig
from hroas.schemas.strategy import FollowUpRequest, StrategyRequest, StrategyResult

logger = logging.getLogger(__name__)

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "api-key", "content-type"]


class RenderBlocksRequest(BaseModel):
    content: str


class DashboardRequest(BaseModel):
    strategy: StrategyResult
    request: StrategyRequest | None = None


def _error(exc: Exception) -> JSONResponse:
    message = str(exc) or "An unexpected error occurred"
    return JSONResponse(content={"error": message}, status_code=500)


def create_app(
    config: ServiceConfig | None = None,
    *,
    client_factory: ClientFactory | None = None,
    dry_run: bool = False,
) -> FastAPI:
    """Build the API.

    ``client_factory`` builds the (analysis, strategy) clients for each
    request; the default reads API keys from the environment at request
    time.
    """
    config = config or ServiceConfig()
    factory = client_factory or build_clients

    app = FastAPI(title="HigherROAS Strategy API", version="1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=CORS_ALLOW_HEADERS,
    )

    def _orchestrator(request: StrategyRequest) -> OrchestratorAgent:
        return OrchestratorAgent.for_request(
            config, request, dry_run=dry_run, client_factory=factory,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'][1:]) or 'body'}: {err['msg']}"
            for err in exc.errors()
        )
        return JSONResponse(content={"error": f"Invalid request: {details}"}, status_code=400)

    @app.get("/")
    async def root() -> dict[str, str]:
        return {"message": "HigherROAS Strategy API online"}

    @app.post("/analyze-website")
    async def analyze_website(request: StrategyRequest):
        """Run the analysis pass, then re-stream the strategy event stream unchanged."""
        try:
            orchestrator = _orchestrator(request)
            await orchestrator.analyze()
            body = await orchestrator.open_strategy_stream()
        except Exception as exc:
            logger.error("Error in analyze-website: %s", exc)
            return _error(exc)

        return StreamingResponse(
            body.iter_bytes(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache"},
        )

    @app.post("/generate-strategy")
    async def generate_strategy(request: StrategyRequest):
        """Run the whole pipeline server side and return ``{strategy}``."""
        try:
            orchestrator = _orchestrator(request)
            result = await orchestrator.run()
        except Exception as exc:
            logger.error("Error in generate-strategy: %s", exc)
            return _error(exc)
        return JSONResponse(content={"strategy": result.model_dump(by_alias=True)})

    @app.post("/answer-followup")
    async def answer_followup(body: FollowUpRequest):
        try:
            _, strategy_client = (build_dry_run_clients if dry_run else factory)(config)
            agent = FollowUpAgent(strategy_client, temperature=config.strategy_temperature)
            exchange = await agent.run(body.question, body.strategy)
        except Exception as exc:
            logger.error("Error in answer-followup: %s", exc)
            return _error(exc)
        return JSONResponse(content={"answer": exchange.answer})

    @app.post("/render-blocks")
    async def render_blocks_endpoint(body: RenderBlocksRequest) -> dict:
        return {"blocks": [block.model_dump() for block in render_blocks(body.content)]}

    @app.post("/dashboard", response_class=HTMLResponse)
    async def dashboard(body: DashboardRequest) -> HTMLResponse:
        return HTMLResponse(render_dashboard(body.strategy, request=body.request))

    return app
