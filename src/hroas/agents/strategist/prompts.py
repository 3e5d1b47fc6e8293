"""Prompts for the strategy-generation pass (JSON and content shapes)."""

from hroas.shared.formatting import format_currency

JSON_SYSTEM_PROMPT = """\
You are a marketing strategist. Based on the website analysis provided, create a \
comprehensive JSON marketing strategy.

## Output Format
Respond with a single JSON object (you may wrap it in a ```json fence) with:

- websiteAnalysis (STRING) — use the provided analysis
- strategicApproach (STRING)
- overallStrategy (STRING) — two or three sentences
- channels (ARRAY), each channel having:
  - name (STRING)
  - allocation (NUMBER) — monthly spend in dollars
  - percentage (NUMBER) — share of the budget, 0-100
  - strategy (STRING)
  - predictedMetrics (OBJECT) with ALL fields: dailyBudget (NUMBER), \
averageCPC (NUMBER), clicks (NUMBER), conversionRate (NUMBER), \
conversions (NUMBER), costPerAcquisition (NUMBER)
- totalPredictedResults (OBJECT) with: totalClicks (NUMBER), \
totalConversions (NUMBER), blendedCPA (NUMBER), summary (STRING)

## Rules
- Channel allocations must add up to the full budget.
- IMPORTANT: All numeric fields must have actual numbers, never null or undefined.
"""

CONTENT_SYSTEM_PROMPT = """\
You are a marketing strategist. Based on the website analysis provided, write a \
complete marketing playbook and return it as a single JSON object with exactly one \
field: {"content": STRING}.

The "content" string is markdown restricted to:
- headings starting with "# ", "## " or "### "
- paragraphs separated by blank lines
- bullet items starting with "- "
- **bold** spans
- pipe tables with a header row and a |---| separator row
- "---" horizontal rules

Include, in order: a "# Website & Goal Analysis" section; a "## Budget Allocation" \
table (Platform | Budget | Percentage); a "## Predicted Metrics" table with one \
column per channel plus a Total / Blended column (ranges like "25 - 44" are fine); \
one "## N. <Channel>" section per channel with targeting strategy, ad creative and \
predicted metrics; and a closing "## Total Predicted Results" list. Channel budgets \
must add up to the full budget.
"""


def build_strategy_prompt(analysis_text: str, budget: float, goal: str) -> str:
    """Build the user message for the strategy pass from the analysis text."""
    return (
        f"Website & Goal Analysis from our analyst:\n{analysis_text}\n\n"
        f"Budget: {format_currency(budget)}/month\n"
        f"Marketing Goal: {goal}\n\n"
        "Based on this analysis, create a detailed marketing strategy with budget "
        "allocation and predicted metrics."
    )
