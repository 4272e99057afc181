"""
Fallback search oracle for Affiliate Scout.

Last discovery stage: when neither the homepage nor the conventional paths
reveal a program, an oracle is asked whether one plausibly exists.
A positive answer is never treated as confirmation; the subject is marked
for human verification.

DESIGN PRINCIPLES:
- Never guess: uncertain answers are UNKNOWN
- Any oracle failure is UNKNOWN, never an exception
"""
import asyncio
from enum import Enum
from typing import Optional, Protocol

import anthropic

from affiliate_scout.utils.logger import LayerLogger


class SearchVerdict(str, Enum):
    """Outcome of a fallback search."""
    LIKELY = "likely"
    UNLIKELY = "unlikely"
    UNKNOWN = "unknown"


class SearchOracle(Protocol):
    """Pluggable "does a program plausibly exist" signal."""

    async def check(self, tool_name: str, domain: str) -> SearchVerdict:
        ...


class NullSearchOracle:
    """Oracle used when no search integration is configured."""

    async def check(self, tool_name: str, domain: str) -> SearchVerdict:
        return SearchVerdict.UNKNOWN


class StaticSearchOracle:
    """Oracle answering a fixed verdict, for wiring tests and dry runs."""

    def __init__(self, verdict: SearchVerdict):
        self.verdict = verdict

    async def check(self, tool_name: str, domain: str) -> SearchVerdict:
        return self.verdict


SYSTEM_PROMPT = """You are a strict research assistant for an affiliate program catalog.

You answer ONE question: does the named product publicly operate an affiliate,
partner or referral program?

ABSOLUTE RULES:
• Answer with EXACTLY one word: YES, NO or UNKNOWN
• Answer YES only if you are confident such a program exists
• Answer NO only if you are confident none exists
• Otherwise answer UNKNOWN"""


class ClaudeSearchOracle:
    """
    Oracle backed by Claude.

    Temperature=0 for deterministic output. The synchronous SDK call runs in
    a worker thread so the event loop keeps serving other subject pipelines.
    """

    MODEL = "claude-3-5-haiku-20241022"

    def __init__(self, api_key: Optional[str], client: Optional[anthropic.Anthropic] = None):
        self.logger = LayerLogger("search_oracle")
        if client is not None:
            self.client = client
        elif api_key:
            self.client = anthropic.Anthropic(api_key=api_key)
        else:
            self.logger.log_error("CLAUDE_API_KEY not configured", error_type="configuration")
            self.client = None

    def is_available(self) -> bool:
        """Check if Claude client is properly configured."""
        return self.client is not None

    async def check(self, tool_name: str, domain: str) -> SearchVerdict:
        if not self.client:
            return SearchVerdict.UNKNOWN

        try:
            self.logger.log_action("affiliate_search", "started", tool_name=tool_name, domain=domain)
            response = await asyncio.to_thread(
                self.client.messages.create,
                model=self.MODEL,
                max_tokens=5,
                temperature=0,
                system=SYSTEM_PROMPT,
                messages=[{
                    "role": "user",
                    "content": f"Product: {tool_name}\nWebsite: {domain}\n\nAnswer:",
                }],
            )
            answer = response.content[0].text.strip().upper().rstrip(".")
        except Exception as e:
            self.logger.log_error(f"Claude API error: {str(e)}", error_type="api_error", tool_name=tool_name)
            return SearchVerdict.UNKNOWN

        verdict = {
            "YES": SearchVerdict.LIKELY,
            "NO": SearchVerdict.UNLIKELY,
        }.get(answer, SearchVerdict.UNKNOWN)

        self.logger.log_action(
            "affiliate_search",
            "completed",
            tool_name=tool_name,
            answer=answer[:20],
            verdict=verdict.value,
        )
        return verdict
