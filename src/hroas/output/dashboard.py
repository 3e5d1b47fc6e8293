"""Static HTML dashboard generator — renders a strategy to a self-contained HTML file."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

from jinja2 import Environment, FileSystemLoader

from hroas.output.blocks import render_blocks
from hroas.schemas.strategy import (
    ContentStrategy,
    FollowUpExchange,
    StrategyRequest,
    StructuredStrategy,
)
from hroas.shared.formatting import format_currency, format_metric, format_roas

_TEMPLATE_DIR = Path(__file__).parent / "templates"

# Cycled per channel.
CHART_COLORS = ["#6366f1", "#ec4899", "#14b8a6", "#f59e0b", "#8b5cf6"]


def _environment() -> Environment:
    env = Environment(loader=FileSystemLoader(str(_TEMPLATE_DIR)), autoescape=True)
    env.filters["currency"] = format_currency
    env.filters["metric"] = format_metric
    return env


def _blocks_data(content: str) -> list[dict[str, Any]]:
    return [block.model_dump() for block in render_blocks(content)]


def _channels_data(result: StructuredStrategy) -> list[dict[str, Any]]:
    channels = []
    for i, ch in enumerate(result.channels):
        m = ch.predicted_metrics
        channels.append({
            "name": ch.name,
            "allocation": format_currency(ch.allocation),
            "percentage": ch.percentage,
            "percentage_label": format_metric(ch.percentage, percent=True),
            "strategy_blocks": _blocks_data(ch.narrative) if ch.narrative else [],
            "roas": format_roas(ch.expected_roas) if ch.expected_roas is not None else "",
            "color": CHART_COLORS[i % len(CHART_COLORS)],
            "metrics": [
                ("Daily Budget", format_metric(m.daily_budget, currency=True)),
                ("Avg. CPC", format_metric(m.average_cpc, currency=True)),
                ("Clicks", format_metric(m.clicks)),
                ("Conversion Rate", format_metric(m.conversion_rate, percent=True)),
                ("Conversions", format_metric(m.conversions)),
                ("Cost / Acquisition", format_metric(m.cost_per_acquisition, currency=True)),
            ],
        })
    return channels


def _expected_data(result: StructuredStrategy) -> dict[str, str] | None:
    expected = result.expected_results
    if expected is None:
        return None
    return {
        "revenue": format_metric(expected.projected_revenue, currency=True),
        "roas": format_roas(expected.projected_roas),
        "timeframe": expected.timeframe,
    }


def render_dashboard(
    result: StructuredStrategy | ContentStrategy,
    *,
    request: StrategyRequest | None = None,
    follow_ups: Iterable[FollowUpExchange] = (),
    api_base: str = "",
    generated_at: str | None = None,
) -> str:
    """Render a strategy into a self-contained HTML dashboard.

    Structured strategies become cards (analysis, allocation with progress
    bars and per-channel metrics, projected results); content strategies
    are run through ``render_blocks``.  Previous follow-up answers are
    listed under a question form that posts to ``{api_base}/answer-followup``.
    """
    template = _environment().get_template("dashboard.html")

    context: dict[str, Any] = {
        "kind": result.kind,
        "generated_at": generated_at or datetime.now().isoformat(timespec="seconds"),
        "request": request.model_dump() if request else None,
        "budget": format_currency(request.budget) if request else "",
        "follow_ups": [
            {"question": f.question, "blocks": _blocks_data(f.answer)} for f in follow_ups
        ],
        "follow_up_url": f"{api_base.rstrip('/')}/answer-followup",
        "strategy_json": result.model_dump(by_alias=True),
    }

    if isinstance(result, StructuredStrategy):
        totals = result.total_predicted_results
        context.update(
            website_analysis=_blocks_data(result.website_analysis),
            strategic_approach=_blocks_data(result.strategic_approach),
            overall_strategy=_blocks_data(result.overall_strategy),
            channels=_channels_data(result),
            allocated=format_currency(result.allocation_total()),
            totals={
                "clicks": format_metric(totals.total_clicks),
                "conversions": format_metric(totals.total_conversions),
                "blended_cpa": format_metric(totals.blended_cpa, currency=True),
                "summary": totals.summary,
            },
            expected=_expected_data(result),
        )
    else:
        context.update(blocks=_blocks_data(result.content))

    return template.render(**context)
