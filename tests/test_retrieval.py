"""Topic recall tests."""

from __future__ import annotations

from memory.memory_manager import MemoryManager
from memory.retrieval import format_time_ago


def test_recall_combines_topic_and_direct_matches(clock) -> None:
    memory = MemoryManager(clock=clock, available_skills=())
    memory.add_user_input("Should we put Redis in front of the database?", source="chat")
    clock.advance(5 * 60_000)
    memory.add_model_response("Yes, a write-through redis layer works")

    hits = memory.recall_topic("redis")

    assert hits[0].timestamp >= hits[-1].timestamp
    topics = {hit.topic for hit in hits}
    assert topics == {"redis", "direct_match"}
    direct = [hit for hit in hits if hit.topic == "direct_match"]
    assert {hit.role for hit in direct} == {"user", "model"}
    oldest = hits[-1]
    assert oldest.ago == "5 minutes ago"


def test_recall_substring_matches_topic_keys(clock) -> None:
    memory = MemoryManager(clock=clock, available_skills=())
    memory.add_user_input("Add a load balancer", source="chat")

    hits = memory.recall_topic("balancer")

    assert any(hit.topic == "load balancer" for hit in hits)


def test_recall_is_capped_and_empty_query_returns_nothing(clock) -> None:
    memory = MemoryManager(clock=clock, available_skills=())
    for idx in range(8):
        memory.add_user_input(f"kafka partition {idx}", source="chat")
        clock.advance(1_000)

    assert len(memory.recall_topic("kafka")) == 10
    assert memory.recall_topic("") == []
    assert memory.recall_topic("zookeeper") == []


def test_format_time_ago() -> None:
    assert format_time_ago(0, 10_000) == "just now"
    assert format_time_ago(0, 60_000) == "1 minute ago"
    assert format_time_ago(0, 7 * 60_000) == "7 minutes ago"
