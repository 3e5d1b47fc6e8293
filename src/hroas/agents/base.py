"""Base agent ABC — defines the pattern every agent follows."""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any

from hroas.shared.errors import StrategyParseError
from hroas.shared.llm_client import ChatClient

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```[ \t]*(?:json)?[ \t]*\r?\n?(.*?)```", re.DOTALL | re.IGNORECASE)


class BaseAgent(ABC):
    """Abstract base class for the pipeline's AI passes.

    Subclasses implement:
    - ``name`` — human-readable agent name
    - ``get_system_prompt()`` — returns the system prompt string
    """

    def __init__(self, client: ChatClient) -> None:
        self.client = client

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for progress display."""

    @abstractmethod
    def get_system_prompt(self) -> str:
        """Return the system prompt for this agent."""


def extract_json_payload(text: str) -> Any:
    """Parse the JSON payload of a model reply.

    If the reply contains a triple-backtick fence (optionally tagged
    ``json``), the fenced body is parsed; otherwise the whole trimmed text
    is.  Raises ``StrategyParseError`` when parsing fails.
    """
    match = _FENCE_RE.search(text)
    candidate = match.group(1).strip() if match else text.strip()

    try:
        return json.loads(candidate)
    except json.JSONDecodeError as exc:
        logger.debug("Unparsable strategy payload (first 300 chars): %r", candidate[:300])
        raise StrategyParseError(
            f"Failed to parse strategy JSON: {exc.msg} at line {exc.lineno} column {exc.colno}"
        ) from exc
