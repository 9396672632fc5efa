"""Demo chat: a stateless taste of a mentor conversation for visitors.

Nothing is persisted. The caller replays the short history it has shown
so far. An LLM outage is answered with a canned reply, never an error.
"""

from __future__ import annotations

import random
from dataclasses import dataclass

from app.core.exceptions import UpstreamError, UpstreamProtocolError
from app.core.llm import LLMClient
from app.core.logging import get_logger

logger = get_logger(__name__)

DEMO_MODEL = "gpt-4o-mini"
DEMO_MAX_TOKENS = 150
DEMO_TEMPERATURE = 0.8
DEMO_HISTORY_LIMIT = 8

DEMO_PERSONA_PROMPT = """You are a visionary founder and engineer mentoring someone in a demo chat.

Key traits:
- Direct, ambitious, and visionary
- Focus on first principles thinking
- Passionate about technology, space, and sustainable energy
- Encourage bold thinking and calculated risks
- Use occasional humor and stories from building hardware companies
- Keep responses concise but impactful (2-3 sentences max for demo)
- Be encouraging and push people to think bigger

This is a DEMO conversation to showcase the platform. Keep responses engaging and make the user want to continue the conversation."""

FALLBACK_REPLIES = (
    "Interesting question! The key is to think from first principles - what are the fundamental truths we can build from?",
    "That's exactly the kind of thinking we need more of. Don't be afraid to challenge conventional wisdom.",
    "You know, building rockets taught me that the 'impossible' is often just expensive. What if cost wasn't a factor?",
    "I love the ambition in that question. The future belongs to those who think exponentially, not incrementally.",
    "That reminds me of a problem we tackled building cars. Sometimes the best solution is to completely reimagine the problem.",
)


@dataclass(frozen=True)
class DemoTurn:
    content: str
    is_from_user: bool


@dataclass(frozen=True)
class DemoReply:
    content: str
    fallback: bool = False


def build_demo_messages(message: str, history: list[DemoTurn]) -> list[dict]:
    messages = [{"role": "system", "content": DEMO_PERSONA_PROMPT}]
    for turn in history[-DEMO_HISTORY_LIMIT:]:
        messages.append({
            "role": "user" if turn.is_from_user else "assistant",
            "content": turn.content,
        })
    messages.append({"role": "user", "content": message})
    return messages


async def generate_demo_reply(
    llm: LLMClient,
    message: str,
    history: list[DemoTurn] | None = None,
) -> DemoReply:
    """One persona reply. Upstream failures become a random canned reply."""
    try:
        text = await llm.complete(
            build_demo_messages(message, history or []),
            model=DEMO_MODEL,
            max_tokens=DEMO_MAX_TOKENS,
            temperature=DEMO_TEMPERATURE,
        )
        text = text.strip()
        if not text:
            raise UpstreamProtocolError("LLM returned an empty demo completion")
    except UpstreamError as e:
        logger.warning("demo_reply_fallback", code=e.code, error=str(e))
        return DemoReply(content=random.choice(FALLBACK_REPLIES), fallback=True)
    return DemoReply(content=text)
