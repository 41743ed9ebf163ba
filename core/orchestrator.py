"""Top-level application orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from core.config import load_effective_config, section
from core.event_bus import EventBus
from core.pipeline import AssistantPipeline
from core.state_manager import RuntimeState, StateManager
from llm.base_llm import BaseLLM
from llm.fallback_executor import ModelFallbackExecutor
from llm.llm_factory import build_llm
from llm.prompt_engine.question_classifier import QuestionClassifier
from memory.memory_manager import MemoryManager
from vision.screen_extractor import DEFAULT_VISION_MODELS, ScreenTextExtractor


@dataclass
class RuntimeBundle:
    """Holds initialized runtime components."""

    config: dict[str, Any]
    memory: MemoryManager
    llm: BaseLLM | None
    event_bus: EventBus
    state: StateManager
    pipeline: AssistantPipeline


class Orchestrator:
    """Creates and wires runtime components for CLI use."""

    def __init__(
        self,
        root: Path | None = None,
        overrides: dict[str, Any] | None = None,
        llm: BaseLLM | None = None,
    ) -> None:
        default_root = Path(__file__).resolve().parents[1]
        self.root = (root or default_root).resolve()
        self.overrides = overrides
        self._llm = llm

    def build(self) -> RuntimeBundle:
        config = load_effective_config(self.root, self.overrides)
        session_cfg = section(config, "session")
        interview_cfg = section(config, "interview")
        provider_cfg = section(config, "llm", section(config, "llm").get("provider", "groq"))

        event_bus = EventBus()
        memory = MemoryManager(
            max_size=int(session_cfg.get("max_memory_size", 1000)),
            compression_threshold=int(session_cfg.get("compression_threshold", 500)),
            max_duration_minutes=int(session_cfg.get("max_duration_minutes", 240)),
            available_skills=interview_cfg.get("available_modes", ["system-design", "technical-screening", "dsa"]),
            default_skill=interview_cfg.get("default_mode", "system-design"),
            event_bus=event_bus,
        )
        llm = self._llm or build_llm(config=config)

        executor: ModelFallbackExecutor | None = None
        extractor: ScreenTextExtractor | None = None
        if llm is not None:
            executor = ModelFallbackExecutor(
                llm=llm,
                max_retries=int(provider_cfg.get("max_retries", 3)),
                base_delay=float(provider_cfg.get("retry_base_delay", 1.0)),
                event_bus=event_bus,
            )
            extractor = ScreenTextExtractor(
                executor=executor,
                models=provider_cfg.get("vision_models") or DEFAULT_VISION_MODELS,
            )

        state = StateManager(
            RuntimeState(
                follow_up_mode=bool(section(config, "capture").get("follow_up_mode", True)),
                coding_language=interview_cfg.get("coding_language", "python"),
                response_complexity=interview_cfg.get("response_complexity", "medium"),
            )
        )
        pipeline = AssistantPipeline(
            memory=memory,
            llm=llm,
            executor=executor,
            classifier=QuestionClassifier(),
            extractor=extractor,
            config=config,
            state=state,
            event_bus=event_bus,
        )
        return RuntimeBundle(
            config=config,
            memory=memory,
            llm=llm,
            event_bus=event_bus,
            state=state,
            pipeline=pipeline,
        )
