"""Runtime toggles and counters for a single assistant run."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any


@dataclass
class RuntimeState:
    """Mutable in-memory state shared by the pipeline."""

    follow_up_mode: bool = True
    auto_recapture: bool = False
    coding_language: str = "python"
    response_complexity: str = "medium"
    request_count: int = 0
    error_count: int = 0
    last_request_ms: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class StateManager:
    """Wraps runtime state and provides convenience update methods."""

    def __init__(self, state: RuntimeState | None = None) -> None:
        self.state = state or RuntimeState()
        self._lock = threading.Lock()

    def record_request(self, timestamp_ms: int) -> None:
        with self._lock:
            self.state.request_count += 1
            self.state.last_request_ms = timestamp_ms

    def record_error(self) -> None:
        with self._lock:
            self.state.error_count += 1

    def toggle_follow_up(self) -> bool:
        with self._lock:
            self.state.follow_up_mode = not self.state.follow_up_mode
            return self.state.follow_up_mode

    def set_auto_recapture(self, enabled: bool) -> None:
        self.state.auto_recapture = enabled

    def set_coding_language(self, language: str) -> None:
        self.state.coding_language = language

    def set_complexity(self, complexity: str) -> None:
        self.state.response_complexity = complexity
