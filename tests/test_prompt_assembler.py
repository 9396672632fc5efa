"""Tests for prompt assembly: sections, caps and turn typing."""

from __future__ import annotations

import pytest

from app.core.exceptions import ValidationError
from app.core.prompt_assembler import (
    CLOSING_INSTRUCTION,
    IMAGE_NOTE,
    IncomingMessage,
    MultimodalTurn,
    TextTurn,
    assemble_prompt,
    render_memory,
)
from app.services.knowledge import KnowledgeSnippet
from tests.factories import make_memory, make_message, make_user


# ── System prompt ───────────────────────────────────────────────


class TestSystemPrompt:
    def test_persona_comes_first_and_closing_last(self, mentor, user):
        prompt = assemble_prompt(mentor=mentor, user=user, message=IncomingMessage(text="Hi"))
        assert prompt.system_prompt.startswith(mentor.persona_prompt)
        assert prompt.system_prompt.endswith(CLOSING_INSTRUCTION)

    def test_missing_profile_fields_render_not_specified(self, mentor):
        user = make_user(name="Ada", bio=None, goals="", interests=None)
        prompt = assemble_prompt(mentor=mentor, user=user, message=IncomingMessage(text="Hi"))
        assert "- Name: Ada" in prompt.system_prompt
        assert "- Bio: Not specified" in prompt.system_prompt
        assert "- Goals: Not specified" in prompt.system_prompt
        assert "- Interests: Not specified" in prompt.system_prompt

    def test_no_memory_and_no_documents_omit_their_blocks(self, mentor, user):
        prompt = assemble_prompt(mentor=mentor, user=user, message=IncomingMessage(text="Hi"))
        assert "Previous Context" not in prompt.system_prompt
        assert "Relevant knowledge" not in prompt.system_prompt
        assert IMAGE_NOTE not in prompt.system_prompt

    def test_memory_block_lists_points(self, mentor, user):
        memory = make_memory(user, mentor, ["Building a SaaS", "Wants funding"], count=3)
        prompt = assemble_prompt(
            mentor=mentor, user=user, memory=memory, message=IncomingMessage(text="Hi"),
        )
        assert "Previous Context (from 3 past conversations):" in prompt.system_prompt
        assert "- Building a SaaS\n- Wants funding" in prompt.system_prompt

    def test_memory_singular_conversation(self, mentor, user):
        memory = make_memory(user, mentor, ["Point"], count=1)
        assert "from 1 past conversation):" in render_memory(memory)

    def test_memory_capped_at_five_points(self, mentor, user):
        memory = make_memory(user, mentor, [f"point {i}" for i in range(8)])
        block = render_memory(memory, max_points=5)
        assert "point 4" in block
        assert "point 5" not in block

    def test_knowledge_block_numbered(self, mentor, user):
        docs = [
            KnowledgeSnippet(title="Pricing", content="Charge more."),
            KnowledgeSnippet(title="Hiring", content="Hire slow."),
        ]
        prompt = assemble_prompt(
            mentor=mentor, user=user, documents=docs, message=IncomingMessage(text="pricing"),
        )
        assert "Relevant knowledge from your knowledge base:" in prompt.system_prompt
        assert "1. Pricing: Charge more." in prompt.system_prompt
        assert "2. Hiring: Hire slow." in prompt.system_prompt

    def test_image_note_present_when_image_attached(self, mentor, user):
        prompt = assemble_prompt(
            mentor=mentor,
            user=user,
            message=IncomingMessage(text="Look", image_key="images/a.png", image_url=None),
        )
        assert IMAGE_NOTE in prompt.system_prompt

    def test_empty_persona_rejected(self, mentor, user):
        mentor.persona_prompt = "   "
        with pytest.raises(ValidationError):
            assemble_prompt(mentor=mentor, user=user, message=IncomingMessage(text="Hi"))


# ── Turn list ───────────────────────────────────────────────────


class TestTurns:
    def test_history_bounded_to_limit(self, mentor, user, chat):
        history = [
            make_message(chat, f"m{i}", is_from_user=i % 2 == 0) for i in range(15)
        ]
        prompt = assemble_prompt(
            mentor=mentor,
            user=user,
            history=history,
            history_limit=10,
            message=IncomingMessage(text="latest"),
        )
        assert len(prompt.turns) == 11
        assert prompt.turns[0].text == "m5"
        assert prompt.turns[-1] == TextTurn(role="user", text="latest")

    def test_history_roles(self, mentor, user, chat):
        history = [
            make_message(chat, "question", is_from_user=True),
            make_message(chat, "answer", is_from_user=False),
        ]
        prompt = assemble_prompt(
            mentor=mentor, user=user, history=history, message=IncomingMessage(text="next"),
        )
        assert [t.role for t in prompt.turns] == ["user", "assistant", "user"]

    def test_resolved_image_makes_multimodal_final_turn(self, mentor, user):
        prompt = assemble_prompt(
            mentor=mentor,
            user=user,
            message=IncomingMessage(
                text="What is this?",
                image_key="images/a.png",
                image_url="https://cdn.example.com/a.png",
            ),
        )
        assert prompt.is_multimodal
        assert isinstance(prompt.turns[-1], MultimodalTurn)

        payload = prompt.to_openai_messages()
        assert payload[0]["role"] == "system"
        assert payload[-1]["content"] == [
            {"type": "text", "text": "What is this?"},
            {"type": "image_url", "image_url": {"url": "https://cdn.example.com/a.png"}},
        ]

    def test_unresolved_image_falls_back_to_text_turn(self, mentor, user):
        prompt = assemble_prompt(
            mentor=mentor,
            user=user,
            message=IncomingMessage(text="Look", image_key="images/a.png", image_url=None),
        )
        assert not prompt.is_multimodal
        assert prompt.turns[-1] == TextTurn(role="user", text="Look")
