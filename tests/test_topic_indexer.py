"""Topic extraction and pruning tests."""

from __future__ import annotations

from memory.topic_indexer import SNIPPET_LIMIT, RegexTopicMatcher, TopicIndexer


def test_index_normalizes_and_records_every_match() -> None:
    indexer = TopicIndexer()
    tagged = indexer.index("Put a Redis cache in front of PostgreSQL, then add a CACHE tier.", 10)

    assert "redis" in tagged
    assert "postgresql" in tagged
    assert tagged.count("cache") == 2
    assert len(indexer.get("cache")) == 2
    assert indexer.get("redis")[0].timestamp == 10


def test_snippet_is_truncated() -> None:
    indexer = TopicIndexer()
    content = "kafka " + "x" * 500
    indexer.index(content, 1)

    snippet = indexer.get("kafka")[0].content_snippet
    assert len(snippet) == SNIPPET_LIMIT
    assert content.startswith(snippet)


def test_non_text_and_empty_content_are_ignored() -> None:
    indexer = TopicIndexer()
    assert indexer.index("", 1) == []
    assert indexer.index(None, 1) == []
    assert indexer.index({"text": "redis"}, 1) == []
    assert len(indexer) == 0


def test_metric_pattern_captures_quantities() -> None:
    indexer = TopicIndexer()
    indexer.index("We need p99 under 200 ms at 50000 QPS with 3 TB of storage", 5)

    assert "200 ms" in indexer
    assert "3 tb" in indexer


def test_prune_drops_old_occurrences_and_empty_topics() -> None:
    indexer = TopicIndexer()
    indexer.index("redis and kafka", 100)
    indexer.index("redis again", 300)

    removed = indexer.prune(cutoff=200)

    assert removed == 2
    assert "kafka" not in indexer
    assert [entry.timestamp for entry in indexer.get("redis")] == [300]


def test_custom_matcher_table() -> None:
    indexer = TopicIndexer(RegexTopicMatcher([("custom", r"\bbloom filter\b")]))
    indexer.index("A Bloom Filter avoids disk reads; redis is not indexed here", 1)

    assert indexer.keys() == ["bloom filter"]
