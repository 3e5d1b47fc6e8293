"""Markdown export — renders a strategy in the subset ``render_blocks`` reads."""

from __future__ import annotations

from hroas.schemas.strategy import ContentStrategy, StructuredStrategy
from hroas.shared.formatting import format_currency, format_metric, format_roas


def _cell(text: str) -> str:
    # Pipes inside a cell would start a new column.
    return text.replace("|", "/").replace("\n", " ").strip()


def render_strategy_markdown(result: StructuredStrategy | ContentStrategy) -> str:
    """Render a strategy into a Markdown string.

    Content strategies are already markdown and are returned unchanged.
    """
    if isinstance(result, ContentStrategy):
        return result.content

    sections: list[str] = []

    if result.website_analysis:
        sections.append("# Website & Goal Analysis\n")
        sections.append(result.website_analysis + "\n")

    if result.strategic_approach:
        sections.append("## Strategic Approach\n")
        sections.append(result.strategic_approach + "\n")

    if result.overall_strategy:
        sections.append("## Overall Strategy\n")
        sections.append(result.overall_strategy + "\n")

    if result.channels:
        sections.append("## Budget Allocation\n")
        sections.append("| Platform | Budget | Percentage |")
        sections.append("|----------|--------|------------|")
        for ch in result.channels:
            sections.append(
                f"| {_cell(ch.name)} | {format_currency(ch.allocation)} | {format_metric(ch.percentage)}% |"
            )
        sections.append("")

        sections.append("## Predicted Metrics\n")
        sections.append("| Metric | " + " | ".join(_cell(ch.name) for ch in result.channels) + " |")
        sections.append("|" + "---|" * (len(result.channels) + 1))
        rows = [
            ("Daily Budget", "daily_budget", {"currency": True}),
            ("Avg. CPC", "average_cpc", {"currency": True}),
            ("Clicks", "clicks", {}),
            ("Conversion Rate", "conversion_rate", {"percent": True}),
            ("Conversions", "conversions", {}),
            ("Cost Per Acquisition", "cost_per_acquisition", {"currency": True}),
        ]
        for label, attr, fmt in rows:
            values = [
                _cell(format_metric(getattr(ch.predicted_metrics, attr), **fmt))
                for ch in result.channels
            ]
            sections.append(f"| {label} | " + " | ".join(values) + " |")
        sections.append("")

        for i, ch in enumerate(result.channels, 1):
            sections.append("---\n")
            sections.append(f"## {i}. {ch.name} ({format_currency(ch.allocation)})\n")
            if ch.expected_roas is not None:
                sections.append(f"**Expected ROAS:** {format_roas(ch.expected_roas)}\n")
            if ch.narrative:
                sections.append(ch.narrative + "\n")

    totals = result.total_predicted_results
    sections.append("---\n")
    sections.append("## Total Predicted Results\n")
    sections.append(f"- **Total Clicks:** {format_metric(totals.total_clicks)}")
    sections.append(f"- **Total Conversions:** {format_metric(totals.total_conversions)}")
    sections.append(f"- **Blended CPA:** {format_metric(totals.blended_cpa, currency=True)}")
    if totals.summary:
        sections.append("")
        sections.append(totals.summary)

    expected = result.expected_results
    if expected is not None:
        sections.append("")
        sections.append("## Expected Results\n")
        sections.append(f"- **Projected Revenue:** {format_metric(expected.projected_revenue, currency=True)}")
        sections.append(f"- **Expected ROAS:** {format_roas(expected.projected_roas)}")
        if expected.timeframe:
            sections.append(f"- **Timeframe:** {expected.timeframe}")

    return "\n".join(sections).rstrip() + "\n"
