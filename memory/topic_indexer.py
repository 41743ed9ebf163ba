"""Domain-vocabulary topic extraction and indexing."""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from typing import Protocol

from memory.types.topic import TopicOccurrence

SNIPPET_LIMIT = 200

# (category, pattern) rows; every match of every row is indexed.
DEFAULT_TOPIC_PATTERNS: list[tuple[str, str]] = [
    ("storage", r"\b(SQL|NoSQL|PostgreSQL|MySQL|MongoDB|DynamoDB|Cassandra|Redis|Memcached)\b"),
    ("storage", r"\b(database|DB|schema|index|query|JOIN|partition|shard)\b"),
    ("storage", r"\b(ACID|BASE|transaction|consistency|durability)\b"),
    ("architecture", r"\b(microservice|monolith|API gateway|service mesh|load balancer)\b"),
    ("architecture", r"\b(REST|GraphQL|gRPC|WebSocket|HTTP|HTTPS)\b"),
    ("architecture", r"\b(cache|caching|CDN|proxy|reverse proxy)\b"),
    ("scalability", r"\b(horizontal scaling|vertical scaling|auto-scaling|replication|read replica)\b"),
    ("scalability", r"\b(throughput|latency|QPS|TPS|SLA|availability)\b"),
    ("scalability", r"\b(CAP theorem|eventual consistency|strong consistency)\b"),
    ("algorithms", r"\b(hash map|hash table|binary search|two pointer|sliding window)\b"),
    ("algorithms", r"\b(dynamic programming|DP|greedy|BFS|DFS|topological sort)\b"),
    ("algorithms", r"\b(tree|graph|heap|stack|queue|trie|linked list)\b"),
    ("algorithms", r"\b(O\([\w\s\*log]+\)|time complexity|space complexity)\b"),
    ("infrastructure", r"\b(Kubernetes|Docker|container|pod|deployment|Kafka|RabbitMQ)\b"),
    ("infrastructure", r"\b(message queue|pub-sub|event-driven|CQRS|saga)\b"),
    ("metrics", r"\b(\d+(?:\.\d+)?\s*(?:MB|GB|TB|ms|seconds|QPS|TPS|ops/sec))\b"),
]


class TopicMatcher(Protocol):
    """Anything that can pull topic phrases out of free text."""

    def match(self, text: str) -> Iterable[str]:
        ...


class RegexTopicMatcher:
    """Matches text against a table of case-insensitive regular expressions."""

    def __init__(self, patterns: Iterable[tuple[str, str]] | None = None) -> None:
        rows = list(patterns) if patterns is not None else DEFAULT_TOPIC_PATTERNS
        self.patterns = [(category, re.compile(pattern, re.IGNORECASE)) for category, pattern in rows]

    def match(self, text: str) -> Iterator[str]:
        for _, pattern in self.patterns:
            for found in pattern.finditer(text):
                yield found.group(0)


class TopicIndexer:
    """Files topic matches under normalized keys with provenance."""

    def __init__(self, matcher: TopicMatcher | None = None) -> None:
        self.matcher = matcher or RegexTopicMatcher()
        self._topics: dict[str, list[TopicOccurrence]] = {}

    def index(self, content: object, timestamp: int) -> list[str]:
        """Extract topics from content and record an occurrence for each match."""
        if not isinstance(content, str) or not content:
            return []
        snippet = content[:SNIPPET_LIMIT]
        tagged: list[str] = []
        for raw in self.matcher.match(content):
            topic = raw.lower().strip()
            if not topic:
                continue
            self._topics.setdefault(topic, []).append(
                TopicOccurrence(content_snippet=snippet, timestamp=timestamp)
            )
            tagged.append(topic)
        return tagged

    def prune(self, cutoff: int) -> int:
        """Drop occurrences older than cutoff; topics left empty are deleted."""
        removed = 0
        for topic in list(self._topics):
            kept = [entry for entry in self._topics[topic] if entry.timestamp >= cutoff]
            removed += len(self._topics[topic]) - len(kept)
            if kept:
                self._topics[topic] = kept
            else:
                del self._topics[topic]
        return removed

    def keys(self) -> list[str]:
        return list(self._topics)

    def entries(self) -> list[tuple[str, list[TopicOccurrence]]]:
        return [(topic, list(items)) for topic, items in self._topics.items()]

    def clear(self) -> None:
        self._topics.clear()

    def __len__(self) -> int:
        return len(self._topics)

    def __contains__(self, topic: object) -> bool:
        return topic in self._topics
