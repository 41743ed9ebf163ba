"""Prompt composition and structured response splitting tests."""

from __future__ import annotations

from llm.prompt_engine import prompts
from llm.prompt_engine.memory_injection import build_messages, format_session_memory, with_follow_up
from llm.prompt_engine.response_splitter import split_structured_response
from memory.memory_manager import MemoryManager


def test_session_memory_role_mapping(clock) -> None:
    memory = MemoryManager(clock=clock, available_skills=())
    memory.add_ocr_event("Design Twitter")
    memory.add_user_input("focus on the feed", source="chat")
    memory.add_model_response("Fan-out on write")
    memory.add_event("skill_change", "mode switched")
    memory.append("user", "")

    messages = format_session_memory(memory.events)

    assert messages == [
        {"role": "user", "content": "[Screen Content]: Design Twitter"},
        {"role": "user", "content": "focus on the feed"},
        {"role": "assistant", "content": "Fan-out on write"},
        {"role": "system", "content": "mode switched"},
    ]


def test_session_memory_keeps_last_twenty(clock) -> None:
    memory = MemoryManager(clock=clock, available_skills=())
    for idx in range(25):
        memory.add_user_input(f"line {idx}", source="chat")

    messages = format_session_memory(memory.events)

    assert len(messages) == 20
    assert messages[0]["content"] == "line 5"


def test_build_messages_order() -> None:
    messages = build_messages("SYSTEM", "question")

    assert messages == [
        {"role": "system", "content": "SYSTEM"},
        {"role": "user", "content": "question"},
    ]


def test_with_follow_up_prefixes_context() -> None:
    assert with_follow_up("next", "") == "next"
    combined = with_follow_up("next", "CTX", label="NEW SCREEN CONTENT")
    assert combined == "CTX\n\nNEW SCREEN CONTENT (respond to this, building on context above):\nnext"


def test_system_prompts_compose_layers() -> None:
    prompt = prompts.build_system_prompt("dsa", "short", programming_language="go")

    assert prompt.startswith(prompts.SKILL_PROMPTS["dsa"])
    assert prompts.COMPLEXITY_LAYERS["short"] in prompt
    assert prompt.endswith("use go only.")
    assert "Part A" in prompts.build_structured_prompt("design")
    assert "Solution Code" in prompts.build_structured_prompt("coding")
    assert prompts.canned_response("unknown") == prompts.CANNED_RESPONSES["dsa"]


def test_split_plain_headings() -> None:
    parts = split_structured_response("## Part A\nDo X\n## Part B\nCode Y")

    assert (parts.part_a, parts.part_b) == ("Do X", "Code Y")


def test_split_with_empty_sections_keeps_whole_reply() -> None:
    text = "## Part A\n## Part B\n"

    parts = split_structured_response(text)

    assert parts.part_a == ""
    assert parts.part_b == text


def test_split_markdown_headings() -> None:
    text = "## Part A — What to Say\n- clarify scope\n- estimate load\n## Part B — Solution\nUse consistent hashing."

    parts = split_structured_response(text)

    assert parts.part_a == "- clarify scope\n- estimate load"
    assert parts.part_b == "Use consistent hashing."


def test_split_bold_labels_with_colons() -> None:
    text = "Intro line\n**Part A:** talking points\nSay this first\n**Part B:** code\ndef solve(): pass\n"

    parts = split_structured_response(text)

    assert parts.part_a == "Say this first"
    assert parts.part_b == "def solve(): pass"


def test_split_without_labels_puts_everything_in_part_b() -> None:
    parts = split_structured_response("Just an answer")

    assert parts.part_a == ""
    assert parts.part_b == "Just an answer"


def test_split_with_only_part_b() -> None:
    parts = split_structured_response("# Part B\nonly the solution")

    assert parts.part_a == ""
    assert parts.part_b == "only the solution"
