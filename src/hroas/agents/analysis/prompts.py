"""Prompts for the website analysis pass."""

from hroas.shared.formatting import format_currency

ANALYSIS_SYSTEM_PROMPT = (
    "You are a business analyst specializing in understanding websites and marketing goals."
)


def build_analysis_prompt(website_url: str, budget: float, goal: str, page_content: str) -> str:
    """Build the user message for the analysis pass.

    With page text the model characterizes the business from it; without,
    it infers the business from the URL and goal alone.
    """
    if page_content:
        return (
            f"Analyze this website and marketing goal. Website URL: {website_url}, "
            f"Content: {page_content}. Marketing Goal: {goal}. "
            f"Budget: {format_currency(budget)}/month. Provide a detailed analysis of: "
            "1) What the business does and its value proposition, "
            "2) Target audience, "
            "3) Key selling points, "
            "4) How this relates to the marketing goal. "
            "Be concise but thorough."
        )
    return (
        f"Analyze this marketing scenario. Website URL: {website_url}, "
        f"Marketing Goal: {goal}, Budget: {format_currency(budget)}/month. "
        "The website content could not be retrieved. Based on the URL and goal, "
        "provide analysis of likely business type, target audience, and marketing approach."
    )
