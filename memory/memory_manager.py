"""Bounded, time-windowed conversation memory with session lifecycle."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Callable, Mapping
from typing import Any

from core.event_bus import MEMORY_UPDATED, SESSION_ENDED, SESSION_STARTED
from memory.consolidation.compressor import Compressor
from memory.consolidation.consolidator import Consolidator
from memory.consolidation.forgetting import ForgettingPolicy
from memory.followup import OCR_PREFIX, build_pairs, render_follow_up_context
from memory.retrieval import MemoryRetriever
from memory.topic_indexer import TopicIndexer
from memory.types import (
    Category,
    Event,
    EventMetadata,
    HistorySnapshot,
    RecallHit,
    Role,
    SessionSummary,
    SessionTimer,
    categorize_action,
    infer_action,
)

logger = logging.getLogger("dv.memory")

OCR_TEXT_LIMIT = 4000
IMPORTANT_LIMIT = 5
DEFAULT_SKILLS = ("system-design", "technical-screening", "dsa")

Clock = Callable[[], int]
TimerFactory = Callable[[float, Callable[[], None]], Any]


def now_ms() -> int:
    """Wall clock in milliseconds since the epoch."""
    return int(time.time() * 1000)


class MemoryManager:
    """Authoritative in-process event log, topic index and session state.

    Mutations are serialized with a re-entrant lock. Views hand back new lists
    that reference the stored events; events are never mutated in place.
    """

    def __init__(
        self,
        max_size: int = 1000,
        compression_threshold: int = 500,
        max_duration_minutes: int = 240,
        available_skills: list[str] | tuple[str, ...] = DEFAULT_SKILLS,
        default_skill: str = "system-design",
        skill_prompts: Mapping[str, str] | None = None,
        topic_indexer: TopicIndexer | None = None,
        clock: Clock | None = None,
        event_bus: Any | None = None,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        if skill_prompts is None:
            from llm.prompt_engine.prompts import SKILL_PROMPTS

            skill_prompts = SKILL_PROMPTS
        self.max_size = max_size
        self.compression_threshold = compression_threshold
        self.max_duration_minutes = max_duration_minutes or 240
        self.available_skills = list(available_skills)
        self.skill_prompts = skill_prompts
        self.active_skill = default_skill
        self.topics = topic_indexer or TopicIndexer()
        self.clock: Clock = clock or now_ms
        self.event_bus = event_bus
        self.timer_factory: TimerFactory = timer_factory or threading.Timer

        self.forgetting = ForgettingPolicy(max_duration_minutes=self.max_duration_minutes)
        self.consolidator = Consolidator()
        self.compressor = Compressor(max_size=max_size)
        self.retriever = MemoryRetriever()

        self.session_start_time: int | None = None
        self.session_active = False
        self.last_summary: SessionSummary | None = None
        self._deadline: int | None = None
        self._timer: Any | None = None
        self._events: list[Event] = []
        self._lock = threading.RLock()

        self._seed_skill_baseline()

    # ── Session lifecycle ────────────────────────────────────────────

    def start_session(self, mode: str | None = None) -> SessionTimer:
        """Reset memory and arm the auto-end deadline."""
        with self._lock:
            if self.session_active:
                logger.warning(
                    "Starting a new session while one is active; previous state is discarded "
                    "without a summary (mode=%s)",
                    self.active_skill,
                )
            self._disarm_timer()
            if mode:
                self.active_skill = mode
            self.session_start_time = self.clock()
            self.session_active = True
            self._events = []
            self.topics.clear()
            self._deadline = self.session_start_time + self.max_duration_minutes * 60_000
            self._arm_timer()

            self.append(
                role=Role.SYSTEM,
                content=(
                    f"Interview session started. Mode: {self.active_skill}. "
                    f"Duration: {self.max_duration_minutes} minutes."
                ),
                action="session_start",
            )
            timer = self.get_session_timer()
            logger.info(
                "Session started mode=%s duration_minutes=%d",
                self.active_skill,
                self.max_duration_minutes,
            )
        self._emit(SESSION_STARTED, {"mode": self.active_skill, "timer": timer})
        return timer

    def end_session(self, end_ms: int | None = None) -> SessionSummary:
        """Disarm the deadline, summarize, and mark the session inactive.

        ``end_ms`` pins the session end time; a forced end passes the deadline
        so a late check does not inflate the duration.
        """
        with self._lock:
            self._disarm_timer()
            self._deadline = None
            summary = self.summarize(end_ms)
            self.session_active = False
            self.last_summary = summary
            logger.info(
                "Session ended duration_minutes=%d events=%d topics=%d",
                summary.duration_minutes,
                summary.total_events,
                summary.topic_count,
            )
        self._emit(SESSION_ENDED, {"summary": summary})
        return summary

    def check_deadline(self) -> SessionSummary | None:
        """Force-end the session once the clock has passed its deadline."""
        with self._lock:
            if not self.session_active or self._deadline is None:
                return None
            deadline = self._deadline
            if self.clock() < deadline:
                return None
            logger.info("Session duration limit reached; ending session")
            return self.end_session(end_ms=deadline)

    def get_session_timer(self, at_ms: int | None = None) -> SessionTimer:
        with self._lock:
            return SessionTimer.compute(
                start_ms=self.session_start_time,
                now_ms=self.clock() if at_ms is None else at_ms,
                max_duration_minutes=self.max_duration_minutes,
                active=self.session_active,
            )

    def elapsed_minutes(self, at_ms: int | None = None) -> int:
        if self.session_start_time is None:
            return 0
        now = self.clock() if at_ms is None else at_ms
        return round((now - self.session_start_time) / 60_000)

    def set_active_skill(self, skill: str) -> Event:
        with self._lock:
            previous = self.active_skill
            self.active_skill = skill
            event = self.append(
                role=Role.SYSTEM,
                content=f"Interview mode switched from {previous} to {skill}",
                action="skill_change",
                metadata={"extra": {"from": previous, "to": skill}},
            )
        logger.info("Active skill changed from=%s to=%s", previous, skill)
        return event

    def _arm_timer(self) -> None:
        timer = self.timer_factory(self.max_duration_minutes * 60.0, self._on_timer)
        timer.daemon = True
        timer.start()
        self._timer = timer

    def _disarm_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        with self._lock:
            if not self.session_active:
                return
            logger.info("Session timer expired; ending session")
            self._timer = None
            deadline = self._deadline
            now = self.clock()
            self.end_session(end_ms=min(now, deadline) if deadline is not None else now)

    # ── Event recording ──────────────────────────────────────────────

    def append(
        self,
        role: Role | str,
        content: Any,
        action: str | None = None,
        metadata: Mapping[str, Any] | EventMetadata | None = None,
    ) -> Event:
        """Record an event, index its topics, and run maintenance."""
        role = Role(role)
        if isinstance(metadata, EventMetadata):
            base = metadata.model_dump()
        else:
            base = dict(metadata or {})
        with self._lock:
            base["skill"] = self.active_skill
            base["session_elapsed"] = self.elapsed_minutes()
            timestamp = self.clock()
            if self._events and timestamp < self._events[-1].timestamp:
                timestamp = self._events[-1].timestamp
            resolved_action = action or infer_action(role)
            event = Event(
                id=self._generate_event_id(timestamp),
                timestamp=timestamp,
                role=role,
                content=content,
                action=resolved_action,
                category=categorize_action(action or role.value),
                metadata=EventMetadata.from_kwargs(**base),
            )
            self._events.append(event)
            self.topics.index(event.content, event.timestamp)
            self.evict_expired()
            self.perform_maintenance_if_needed()
            self._emit_update()
        return event

    def add_user_input(self, text: str, source: str = "speech") -> Event:
        action = {"speech": "voice_input", "chat": "chat_input"}.get(source, "llm_input")
        return self.append(
            role=Role.USER,
            content=text,
            action=action,
            metadata={"source": source, "text_length": len(text) if isinstance(text, str) else 0},
        )

    def add_model_response(self, text: str, **metadata: Any) -> Event:
        payload = {"response_length": len(text) if isinstance(text, str) else 0, **metadata}
        return self.append(role=Role.MODEL, content=text, action="model_response", metadata=payload)

    def add_ocr_event(self, extracted_text: str, **metadata: Any) -> Event:
        text = extracted_text if isinstance(extracted_text, str) else ""
        safe_text = text[:OCR_TEXT_LIMIT] + "..." if len(text) > OCR_TEXT_LIMIT else text
        payload = {"full_text_length": len(text), **metadata}
        return self.append(
            role=Role.SYSTEM,
            content=f"{OCR_PREFIX}{safe_text}",
            action="ocr_capture",
            metadata=payload,
        )

    def add_event(self, action: str, content: str | None = None, **metadata: Any) -> Event:
        return self.append(role=Role.SYSTEM, content=content or action, action=action, metadata=metadata)

    # ── Maintenance ──────────────────────────────────────────────────

    def evict_expired(self) -> int:
        """Drop events and topic occurrences outside the retention window."""
        with self._lock:
            self._events, counts = self.forgetting.run(self._events, self.topics, self.clock())
            return counts["evicted_events"]

    def consolidate(self) -> int:
        """Merge adjacent identical system events once; returns merge count."""
        with self._lock:
            self._events, merges = self.consolidator.run(self._events)
            return merges

    def perform_maintenance_if_needed(self) -> bool:
        with self._lock:
            if len(self._events) > self.compression_threshold:
                self.perform_maintenance()
                return True
            return False

    def perform_maintenance(self) -> None:
        with self._lock:
            self.evict_expired()
            self.consolidate()
            self._events = self.compressor.compress(self._events)

    # ── Views ────────────────────────────────────────────────────────

    @property
    def events(self) -> list[Event]:
        with self._lock:
            return list(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def get_optimized_history(self, limit: int = 15) -> HistorySnapshot:
        self.check_deadline()
        with self._lock:
            self.evict_expired()
            return self._snapshot(limit)

    def _snapshot(self, limit: int = 15) -> HistorySnapshot:
        recent = [
            event
            for event in self._events
            if event.role in (Role.USER, Role.MODEL) or event.action == "ocr_capture"
        ]
        important = [
            event
            for event in self._events
            if event.category in (Category.INTERACTION, Category.AI) or event.action == "ocr_capture"
        ]
        return HistorySnapshot(
            recent=recent[-limit:] if limit > 0 else [],
            important=important[-IMPORTANT_LIMIT:],
            topics=self.topics.keys(),
            timer=self.get_session_timer(),
            event_count=len(self._events),
        )

    def get_follow_up_context(self, max_pairs: int = 3) -> str:
        with self._lock:
            relevant = [
                event
                for event in self._events
                if event.action == "ocr_capture" or event.role in (Role.USER, Role.MODEL)
            ]
        return render_follow_up_context(build_pairs(relevant), max_pairs=max_pairs)

    def recall_topic(self, query: str) -> list[RecallHit]:
        with self._lock:
            return self.retriever.retrieve(query, self.topics, list(self._events), self.clock())

    def get_conversation_history(self, max_entries: int = 20) -> list[dict[str, Any]]:
        with self._lock:
            dialog = [event for event in self._events if event.role in (Role.USER, Role.MODEL)]
        return [event.transcript_entry() for event in dialog[-max_entries:]]

    def get_full_conversation_history(self) -> list[dict[str, Any]]:
        with self._lock:
            return [
                {**event.transcript_entry(), "action": event.action}
                for event in self._events
                if event.action != "skill_init"
            ]

    def get_recent_events(self, count: int = 10) -> list[Event]:
        with self._lock:
            return self._events[-count:] if count > 0 else []

    def summarize(self, end_ms: int | None = None) -> SessionSummary:
        with self._lock:
            timer = self.get_session_timer(end_ms)
            topics = self.topics.keys()
            dialog = [event for event in self._events if event.role in (Role.USER, Role.MODEL)]
            return SessionSummary(
                duration=timer.formatted,
                duration_minutes=self.elapsed_minutes(end_ms),
                mode=self.active_skill,
                total_events=len(self._events),
                user_messages=sum(1 for event in dialog if event.role == Role.USER),
                ai_responses=sum(1 for event in dialog if event.role == Role.MODEL),
                topics_covered=topics,
                topic_count=len(topics),
                transcript=[event.transcript_entry() for event in dialog],
            )

    def memory_usage(self) -> dict[str, Any]:
        with self._lock:
            return {
                "event_count": len(self._events),
                "topic_count": len(self.topics),
                "max_size": self.max_size,
                "max_duration_minutes": self.max_duration_minutes,
                "session_active": self.session_active,
                "timer": self.get_session_timer(),
            }

    # ── Reset ────────────────────────────────────────────────────────

    def clear(self) -> None:
        """Wipe events, topics and session state, then re-seed the skill baseline."""
        with self._lock:
            self._events = []
            self.topics.clear()
            self.session_start_time = None
            self.session_active = False
            self._deadline = None
            self._disarm_timer()
            self._seed_skill_baseline()
        logger.info("Session memory cleared")

    def clear_conversation(self) -> None:
        """Drop the event log but keep topics and the running session."""
        with self._lock:
            self._events = []
        logger.debug("Conversation events cleared")

    # ── Internals ────────────────────────────────────────────────────

    def _seed_skill_baseline(self) -> None:
        for skill in self.available_skills:
            prompt = self.skill_prompts.get(skill)
            if not prompt:
                logger.debug("Skill prompt not found: %s", skill)
                continue
            timestamp = self.clock()
            self._events.append(
                Event(
                    id=self._generate_event_id(timestamp),
                    timestamp=timestamp,
                    role=Role.SYSTEM,
                    content=f"Skill prompt loaded: {skill}",
                    action="skill_init",
                    category=Category.SYSTEM,
                    metadata=EventMetadata(skill=skill, extra={"prompt_length": len(prompt)}),
                )
            )

    @staticmethod
    def _generate_event_id(timestamp: int) -> str:
        return f"evt_{timestamp}_{uuid.uuid4().hex[:6]}"

    def _emit(self, name: str, payload: dict[str, Any]) -> None:
        if self.event_bus is not None:
            self.event_bus.emit(name, payload)

    def _emit_update(self) -> None:
        if self.event_bus is None or not self.event_bus.has_subscribers(MEMORY_UPDATED):
            return
        self.event_bus.emit(MEMORY_UPDATED, {"snapshot": self._snapshot()})
