"""Number formatting shared by prompts, markdown export and the dashboard."""

from __future__ import annotations


def format_currency(amount: float | str) -> str:
    """``175`` → ``$175``; ``12.5`` → ``$12.50``; strings pass through."""
    if isinstance(amount, str):
        return amount
    if float(amount).is_integer():
        return f"${amount:,.0f}"
    return f"${amount:,.2f}"


def format_metric(value: float | str, *, currency: bool = False, percent: bool = False) -> str:
    """Render a predicted metric.

    Range strings from the content variant ("25 - 44", "~7.0%") are shown
    verbatim; numbers get thousands separators and at most two decimals.
    """
    if isinstance(value, str):
        return value
    if currency:
        return format_currency(value)
    text = f"{value:,.0f}" if float(value).is_integer() else f"{value:,.2f}"
    return f"{text}%" if percent else text


def format_roas(value: float | str) -> str:
    """``3.2`` → ``3.20x``; strings pass through."""
    if isinstance(value, str):
        return value
    return f"{value:,.2f}x"
