"""Conversation memory store tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from memory.followup import CONTEXT_FOOTER, CONTEXT_HEADER
from memory.memory_manager import MemoryManager
from memory.types import Category, Role, format_duration


@pytest.fixture
def build_memory(clock, timer_factory):
    def build(**kwargs) -> MemoryManager:
        return MemoryManager(clock=clock, timer_factory=timer_factory, **kwargs)

    return build


def test_baseline_is_seeded_per_skill(clock, build_memory) -> None:
    memory = build_memory()

    baseline = memory.events
    assert [event.action for event in baseline] == ["skill_init"] * 3
    assert {event.metadata.skill for event in baseline} == {"system-design", "technical-screening", "dsa"}
    assert all(event.metadata.extra["prompt_length"] > 0 for event in baseline)


def test_append_categorizes_and_stamps_metadata(clock, build_memory) -> None:
    memory = build_memory(available_skills=())
    memory.start_session("dsa")
    clock.advance(120_000)

    event = memory.add_user_input("Explain a heap", source="chat")

    assert event.action == "chat_input"
    assert event.category == Category.INTERACTION
    assert event.metadata.skill == "dsa"
    assert event.metadata.session_elapsed == 2
    assert event.metadata.text_length == len("Explain a heap")
    assert "heap" in memory.topics


def test_non_text_content_is_stored_as_empty(clock, build_memory) -> None:
    memory = build_memory(available_skills=())

    event = memory.append(Role.USER, {"not": "text"})

    assert event.content == ""
    assert event.action == "user_message"
    assert len(memory.topics) == 0


def test_timestamps_never_go_backwards(clock, build_memory) -> None:
    memory = build_memory(available_skills=())
    memory.add_user_input("first", source="chat")
    clock.advance(-5_000)

    second = memory.add_user_input("second", source="chat")

    assert second.timestamp == memory.events[0].timestamp


def test_expired_events_are_evicted_but_baseline_survives(clock, build_memory) -> None:
    memory = build_memory(max_duration_minutes=1)
    memory.add_user_input("old question about kafka", source="chat")
    clock.advance(61_000)

    memory.add_user_input("new question", source="chat")

    actions = [event.action for event in memory.events]
    assert actions.count("skill_init") == 3
    contents = [event.content for event in memory.events if event.action == "chat_input"]
    assert contents == ["new question"]
    assert "kafka" not in memory.topics


def test_maintenance_consolidates_then_truncates(clock, build_memory) -> None:
    memory = build_memory(available_skills=(), max_size=3, compression_threshold=2)
    for _ in range(3):
        memory.add_event("skill_change", "mode switched")

    events = memory.events
    assert len(events) == 2
    assert events[0].content == "mode switched (×2)"
    assert events[0].metadata.consolidated is True
    assert events[0].metadata.occurrences == 2
    assert events[1].content == "mode switched"

    memory.add_user_input("one", source="chat")
    memory.add_user_input("two", source="chat")

    assert [event.content for event in memory.events] == ["mode switched", "one", "two"]


def test_consolidation_is_idempotent(clock, build_memory) -> None:
    memory = build_memory(available_skills=())
    for _ in range(4):
        memory.add_event("session_end", "tick")

    assert memory.consolidate() == 2
    assert memory.consolidate() == 0
    assert [event.content for event in memory.events] == ["tick (×2)", "tick (×2)"]


def test_ocr_event_prefix_and_cap(clock, build_memory) -> None:
    memory = build_memory(available_skills=())

    event = memory.add_ocr_event("y" * 4500, detected_type="coding")

    assert event.content.startswith("Screenshot captured: ")
    assert event.content.endswith("...")
    assert len(event.content) == len("Screenshot captured: ") + 4000 + 3
    assert event.metadata.full_text_length == 4500
    assert event.metadata.detected_type == "coding"


def test_follow_up_context_pairs_questions_with_answers(clock, build_memory) -> None:
    memory = build_memory(available_skills=())
    memory.add_ocr_event("Two sum: find indices")
    memory.add_model_response("Use a hash map")
    memory.add_user_input("unanswered", source="chat")
    memory.add_user_input("Why is it O(n)?", source="chat")
    memory.add_model_response("Each lookup is O(1)")

    context = memory.get_follow_up_context()

    assert context.startswith(CONTEXT_HEADER)
    assert context.endswith(CONTEXT_FOOTER + "\n")
    assert "--- Turn 1 ---\nSCREEN CONTENT:\nTwo sum: find indices\n\nYOUR PREVIOUS ANSWER:\nUse a hash map" in context
    assert "--- Turn 2 ---\nUSER MESSAGE:\nWhy is it O(n)?" in context
    assert "unanswered" not in context


def test_follow_up_context_keeps_last_pairs_only(clock, build_memory) -> None:
    memory = build_memory(available_skills=())
    for idx in range(5):
        memory.add_user_input(f"question {idx}", source="chat")
        memory.add_model_response(f"answer {idx}")

    context = memory.get_follow_up_context(max_pairs=3)

    assert "question 1" not in context
    assert "question 2" in context
    assert "--- Turn 3 ---" in context
    assert "--- Turn 4 ---" not in context
    assert memory.get_follow_up_context(max_pairs=0) == ""


def test_follow_up_context_empty_without_answers(clock, build_memory) -> None:
    memory = build_memory(available_skills=())
    memory.add_user_input("hello there", source="chat")

    assert memory.get_follow_up_context() == ""


def test_optimized_history_shape(clock, build_memory) -> None:
    memory = build_memory()
    for idx in range(20):
        memory.add_user_input(f"message {idx}", source="chat")
    memory.add_ocr_event("screen text")

    snapshot = memory.get_optimized_history(limit=5)

    assert len(snapshot.recent) == 5
    assert snapshot.recent[-1].action == "ocr_capture"
    assert len(snapshot.important) == 5
    assert snapshot.event_count == 24


def test_session_lifecycle_and_summary(clock, timers, build_memory) -> None:
    bus = MagicMock()
    bus.has_subscribers.return_value = False
    memory = build_memory(event_bus=bus)

    timer = memory.start_session("technical-screening")
    assert timer.is_active is True
    assert memory.active_skill == "technical-screening"
    assert [event.action for event in memory.events] == ["session_start"]
    assert timers[-1].interval == 240 * 60.0
    assert timers[-1].daemon is True and timers[-1].started is True

    memory.add_user_input("Design a rate limiter with Redis", source="speech")
    memory.add_model_response("Use a token bucket")
    clock.advance(90_000)

    summary = memory.end_session()

    assert summary.duration == "01:30"
    assert summary.mode == "technical-screening"
    assert summary.user_messages == 1
    assert summary.ai_responses == 1
    assert "redis" in summary.topics_covered
    assert [entry["role"] for entry in summary.transcript] == ["user", "model"]
    assert memory.session_active is False
    assert timers[-1].cancelled is True
    emitted = [call.args[0] for call in bus.emit.call_args_list]
    assert emitted[0] == "session.started"
    assert emitted[-1] == "session.ended"


def test_session_auto_ends_when_timer_fires(clock, timers, build_memory) -> None:
    memory = build_memory()
    memory.start_session()

    timers[-1].fire()

    assert memory.session_active is False
    assert memory.last_summary is not None
    assert memory.last_summary.mode == "system-design"


def test_session_deadline_checked_lazily(clock, build_memory) -> None:
    memory = build_memory(max_duration_minutes=1)
    memory.start_session()
    clock.advance(30_000)

    timer = memory.get_session_timer()
    assert timer.percent_complete == 50
    assert timer.remaining_formatted == "00:30"
    assert memory.check_deadline() is None

    clock.advance(31_000)
    memory.get_optimized_history()

    assert memory.session_active is False
    assert memory.last_summary is not None


def test_late_deadline_check_reports_configured_duration(clock, build_memory) -> None:
    memory = build_memory(max_duration_minutes=240)
    memory.start_session("dsa")
    clock.advance(600 * 60_000)

    memory.get_optimized_history()

    summary = memory.last_summary
    assert memory.session_active is False
    assert summary.duration_minutes == 240
    assert summary.duration == "04:00:00"


def test_late_timer_reports_configured_duration(clock, timers, build_memory) -> None:
    memory = build_memory(max_duration_minutes=30)
    memory.start_session()
    clock.advance(45 * 60_000)

    timers[-1].fire()

    assert memory.last_summary.duration_minutes == 30
    assert memory.last_summary.duration == "30:00"


def test_manual_end_uses_current_clock(clock, build_memory) -> None:
    memory = build_memory(max_duration_minutes=240)
    memory.start_session()
    clock.advance(12 * 60_000)

    assert memory.end_session().duration_minutes == 12


def test_restarting_session_discards_previous_state(clock, timers, build_memory) -> None:
    memory = build_memory()
    memory.start_session()
    memory.add_user_input("first session question", source="chat")

    memory.start_session("dsa")

    assert timers[0].cancelled is True
    assert [event.action for event in memory.events] == ["session_start"]
    assert memory.last_summary is None


def test_set_active_skill_records_change(clock, build_memory) -> None:
    memory = build_memory(available_skills=())

    event = memory.set_active_skill("dsa")

    assert memory.active_skill == "dsa"
    assert event.action == "skill_change"
    assert event.metadata.extra == {"from": "system-design", "to": "dsa"}


def test_clear_reseeds_baseline_and_clear_conversation_keeps_topics(clock, build_memory) -> None:
    memory = build_memory()
    memory.add_user_input("load balancer question", source="chat")

    memory.clear_conversation()
    assert memory.events == []
    assert "load balancer" in memory.topics

    memory.clear()
    assert [event.action for event in memory.events] == ["skill_init"] * 3
    assert len(memory.topics) == 0


def test_memory_updated_only_emitted_with_subscribers(clock, build_memory) -> None:
    bus = MagicMock()
    bus.has_subscribers.return_value = False
    memory = build_memory(available_skills=(), event_bus=bus)

    memory.add_user_input("hello", source="chat")
    assert bus.emit.call_count == 0

    bus.has_subscribers.return_value = True
    memory.add_user_input("hello again", source="chat")
    assert bus.emit.call_args.args[0] == "memory.updated"


def test_format_duration_switches_to_hours() -> None:
    assert format_duration(59) == "00:59"
    assert format_duration(3725) == "01:02:05"


def test_conversation_history_views(clock, build_memory) -> None:
    memory = build_memory()
    memory.add_user_input("What is a bloom filter?", source="chat")
    memory.add_model_response("A probabilistic set")
    memory.add_event("skill_change", "mode switched")
    memory.add_user_input("False positives?", source="chat")

    dialog = memory.get_conversation_history(max_entries=2)
    assert [entry["content"] for entry in dialog] == ["A probabilistic set", "False positives?"]
    assert dialog[0]["role"] == "model"

    full = memory.get_full_conversation_history()
    assert [entry["action"] for entry in full] == ["chat_input", "model_response", "skill_change", "chat_input"]

    recent = memory.get_recent_events(2)
    assert [event.action for event in recent] == ["skill_change", "chat_input"]
    assert memory.get_recent_events(0) == []
