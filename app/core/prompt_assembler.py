"""Prompt assembler: persona, profile, memory and knowledge into one prompt.

Produces a single system instruction plus typed turns. Sections that have
nothing to say (no profile, no memory, no matching documents) are omitted
rather than rendered empty.

Caps: history is the last ``history_limit`` messages, memory at most
``max_memory_points`` bullets, knowledge at most ``max_documents`` entries
(already truncated by the retriever).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from app.core.exceptions import ValidationError
from app.models.memory import MentorMemory
from app.models.mentor import Mentor
from app.models.message import Message
from app.models.user import User
from app.services.knowledge import KnowledgeSnippet

NOT_SPECIFIED = "Not specified"

MEMORY_GUIDANCE = (
    "Use this context to provide more personalized and relevant advice. "
    "Reference past discussions when appropriate, but don't overwhelm the user "
    "by mentioning everything at once."
)

IMAGE_NOTE = (
    "The user has shared an image with their message. Please acknowledge the image "
    "and provide relevant feedback or analysis based on what you can see in the image."
)

CLOSING_INSTRUCTION = (
    "Remember to stay in character and provide valuable, actionable advice based on "
    "your expertise, the user's background, and your previous conversations with them."
)


# ── Turn types ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class TextTurn:
    role: Literal["user", "assistant"]
    text: str

    def to_openai(self) -> dict:
        return {"role": self.role, "content": self.text}


@dataclass(frozen=True)
class MultimodalTurn:
    """User turn carrying text plus one image URL."""

    text: str
    image_url: str
    role: Literal["user"] = "user"

    def to_openai(self) -> dict:
        return {
            "role": self.role,
            "content": [
                {"type": "text", "text": self.text},
                {"type": "image_url", "image_url": {"url": self.image_url}},
            ],
        }


Turn = TextTurn | MultimodalTurn


@dataclass(frozen=True)
class IncomingMessage:
    """The message being answered.

    ``image_url`` is the resolved URL of ``image_key``; None when there is no
    image or resolution failed.
    """

    text: str
    image_key: str | None = None
    image_url: str | None = None


@dataclass
class AssembledPrompt:
    system_prompt: str
    turns: list[Turn]

    @property
    def is_multimodal(self) -> bool:
        return bool(self.turns) and isinstance(self.turns[-1], MultimodalTurn)

    def to_openai_messages(self) -> list[dict]:
        return [
            {"role": "system", "content": self.system_prompt},
            *(turn.to_openai() for turn in self.turns),
        ]


# ── Section renderers ───────────────────────────────────────────────


def render_user_profile(user: User | None) -> str:
    if user is None:
        return ""
    return "\n".join([
        "User Profile:",
        f"- Name: {user.name or NOT_SPECIFIED}",
        f"- Bio: {user.bio or NOT_SPECIFIED}",
        f"- Goals: {user.goals or NOT_SPECIFIED}",
        f"- Interests: {user.interests or NOT_SPECIFIED}",
    ])


def render_memory(memory: MentorMemory | None, max_points: int = 5) -> str:
    points = [p for p in (memory.key_points or []) if p][:max_points] if memory else []
    if not points:
        return ""
    count = memory.conversation_count or 0
    plural = "" if count == 1 else "s"
    lines = [f"Previous Context (from {count} past conversation{plural}):"]
    lines.extend(f"- {point}" for point in points)
    lines.append("")
    lines.append(MEMORY_GUIDANCE)
    return "\n".join(lines)


def render_knowledge(documents: Sequence[KnowledgeSnippet], max_documents: int = 3) -> str:
    documents = list(documents)[:max_documents]
    if not documents:
        return ""
    lines = ["Relevant knowledge from your knowledge base:"]
    for index, doc in enumerate(documents, start=1):
        lines.append(f"{index}. {doc.title}: {doc.content}")
    return "\n".join(lines)


def build_final_turn(message: IncomingMessage) -> Turn:
    if message.image_url:
        return MultimodalTurn(text=message.text, image_url=message.image_url)
    return TextTurn(role="user", text=message.text)


# ── Assembly ────────────────────────────────────────────────────────


def assemble_prompt(
    *,
    mentor: Mentor,
    message: IncomingMessage,
    user: User | None = None,
    memory: MentorMemory | None = None,
    documents: Sequence[KnowledgeSnippet] = (),
    history: Sequence[Message] = (),
    history_limit: int = 10,
    max_memory_points: int = 5,
    max_documents: int = 3,
) -> AssembledPrompt:
    """Build the system instruction and the ordered turn list."""
    persona = (mentor.persona_prompt or "").strip()
    if not persona:
        raise ValidationError(f"Mentor {mentor.id} has no persona instructions")

    sections = [
        persona,
        render_user_profile(user),
        render_memory(memory, max_memory_points),
        render_knowledge(documents, max_documents),
        IMAGE_NOTE if message.image_key else "",
        CLOSING_INSTRUCTION,
    ]
    system_prompt = "\n\n".join(s for s in sections if s)

    recent = list(history)[-history_limit:] if history_limit > 0 else []
    turns: list[Turn] = [
        TextTurn(role="user" if m.is_from_user else "assistant", text=m.content or "")
        for m in recent
    ]
    turns.append(build_final_turn(message))

    return AssembledPrompt(system_prompt=system_prompt, turns=turns)
