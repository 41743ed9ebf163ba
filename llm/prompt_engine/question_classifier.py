"""Coding-versus-design classification of captured question text."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from pydantic import BaseModel

logger = logging.getLogger("dv.classifier")

CODING = "coding"
DESIGN = "design"

# Patterns run against lower-cased text; each row counts once however often it matches.
CODING_PATTERNS: list[tuple[str, str]] = [
    ("syntax", r"\b(def |function |class |int |void |public |private |return |if \(|for \(|while \()"),
    ("problem_statement", r"\b(input|output|example|constraint|leetcode|hackerrank|codechef|codeforces)"),
    ("data_structures", r"\b(array|string|linked list|binary tree|graph|matrix|sort|search)\b"),
    ("complexity", r"\b(time complexity|space complexity|o\(n\)|o\(log|o\(1\)|o\(n\^2)"),
    ("techniques", r"\b(two pointer|sliding window|dynamic programming|backtracking|bfs|dfs|greedy)"),
    ("operators", r"=>|\{\}|\[\]|==|!=|\+\+|--|<<|>>"),
    ("code_blocks", r"```|\bint\b.*\(|\bvoid\b.*\("),
]

DESIGN_PATTERNS: list[tuple[str, str]] = [
    ("architecture", r"\b(design|architect|system|scalab|microservice|monolith|distributed)"),
    ("components", r"\b(load balanc|api gateway|database|cache|cdn|message queue|kafka)"),
    ("consistency", r"\b(availability|consistency|partition|replication|shard)"),
    ("traffic", r"\b(user|request|server|client|service|endpoint|traffic|qps|latency)"),
    ("capacity", r"\b(storage|bandwidth|throughput|bottleneck|single point of failure)"),
    ("protocols", r"\b(rest|graphql|grpc|websocket|http|tcp)"),
    ("datastores", r"\b(redis|memcached|postgresql|mongodb|dynamodb|cassandra|elasticsearch)"),
]

CODING_MODES = frozenset({"dsa", "technical-screening"})
DESIGN_MODES = frozenset({"system-design"})


class Classification(BaseModel):
    """Decision plus the scores that produced it."""

    detected_type: str
    coding_score: int = 0
    design_score: int = 0


class QuestionClassifier:
    """Scores text against coding and design pattern families."""

    def __init__(
        self,
        coding_patterns: Iterable[tuple[str, str]] | None = None,
        design_patterns: Iterable[tuple[str, str]] | None = None,
        bias: int = 2,
    ) -> None:
        self.coding = [re.compile(p) for _, p in (coding_patterns or CODING_PATTERNS)]
        self.design = [re.compile(p) for _, p in (design_patterns or DESIGN_PATTERNS)]
        self.bias = bias

    @staticmethod
    def default_for_mode(mode: str) -> str:
        return DESIGN if mode in DESIGN_MODES else CODING

    @staticmethod
    def _hits(patterns: list[re.Pattern[str]], text: str) -> int:
        return sum(1 for pattern in patterns if pattern.search(text))

    def classify(self, extracted_text: str, mode: str) -> Classification:
        """Coding wins only when strictly ahead; ties go to design."""
        if not extracted_text:
            return Classification(detected_type=self.default_for_mode(mode))

        text = extracted_text.lower()
        coding_score = self._hits(self.coding, text)
        design_score = self._hits(self.design, text)
        if mode in CODING_MODES:
            coding_score += self.bias
        if mode in DESIGN_MODES:
            design_score += self.bias

        detected = CODING if coding_score > design_score else DESIGN
        logger.debug(
            "Question type detected coding=%d design=%d type=%s mode=%s",
            coding_score,
            design_score,
            detected,
            mode,
        )
        return Classification(detected_type=detected, coding_score=coding_score, design_score=design_score)
