"""Assistant pipeline: the single entry point that turns inputs into answers.

Every processing call follows the same shape: validate the input, snapshot
memory, build a prompt, run the model fallback chain, then append results to
memory. Backend trouble degrades to a canned, skill-aware answer; only
malformed input produces ``success=False``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from pydantic import BaseModel, Field

from core.event_bus import RESPONSE_READY, EventBus
from core.state_manager import StateManager
from llm.base_llm import BaseLLM
from llm.errors import LLMError
from llm.fallback_executor import GenerationConfig, ModelFallbackExecutor, ModelRequest
from llm.prompt_engine import prompts
from llm.prompt_engine.memory_injection import build_messages, with_follow_up
from llm.prompt_engine.question_classifier import QuestionClassifier
from llm.prompt_engine.response_splitter import split_structured_response
from memory.memory_manager import MemoryManager
from memory.types import Event, HistorySnapshot, RecallHit, SessionSummary, SessionTimer
from vision.image_payload import ImagePayload, InvalidPayloadError
from vision.screen_extractor import ScreenTextExtractor

logger = logging.getLogger("dv.pipeline")

MIN_INPUT_CHARS = 2
TRIGGER_DEFAULT_TEXT = "The candidate needs help with the current topic being discussed."
LANGUAGE_SKILLS = frozenset({"dsa", "technical-screening"})
COMPLEXITIES = ("short", "medium", "long")
FALLBACK_MODEL = "fallback"


class ResponseMetadata(BaseModel):
    processing_time: int = 0
    model_used: str | None = None
    used_fallback: bool = False
    is_follow_up: bool = False
    skill: str | None = None
    complexity: str | None = None
    vision_model: str | None = None
    is_structured: bool = False


class AssistantResult(BaseModel):
    """Outcome of one processing call, ready for display."""

    success: bool
    error: str | None = None
    text: str = ""
    part_a: str = ""
    part_b: str = ""
    detected_type: str | None = None
    extracted_text: str = ""
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)


class LayeredResponse(BaseModel):
    hint: str
    explain: str
    deep_dive: str
    metadata: ResponseMetadata


class AssistantPipeline:
    """Coordinates memory, prompting, the fallback chain and vision extraction."""

    def __init__(
        self,
        memory: MemoryManager,
        llm: BaseLLM | None,
        executor: ModelFallbackExecutor | None,
        classifier: QuestionClassifier,
        extractor: ScreenTextExtractor | None,
        config: dict[str, Any],
        state: StateManager | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self.memory = memory
        self.llm = llm
        self.executor = executor
        self.classifier = classifier
        self.extractor = extractor
        self.config = config
        self.state = state or StateManager()
        self.event_bus = event_bus

        interview_cfg = config.get("interview", {})
        llm_cfg = config.get("llm", {})
        provider_cfg = llm_cfg.get(llm_cfg.get("provider", "groq"), {})
        self.trigger_phrase = str(interview_cfg.get("trigger_phrase", "deep help")).lower()
        self.available_modes = list(interview_cfg.get("available_modes", memory.available_skills))
        self.primary_model = provider_cfg.get("model") or (llm.model if llm else None)
        self.fallback_models = list(provider_cfg.get("fallback_models", []))
        self.generation = GenerationConfig(**llm_cfg.get("generation", {}))
        self.min_image_bytes = int(config.get("capture", {}).get("min_image_bytes", 100))

    # ── Properties ───────────────────────────────────────────────────

    @property
    def skill(self) -> str:
        return self.memory.active_skill

    @property
    def text_models(self) -> list[str]:
        models = [self.primary_model] if self.primary_model else []
        return models + [m for m in self.fallback_models if m not in models]

    def _language(self) -> str | None:
        if self.skill in LANGUAGE_SKILLS:
            return self.state.state.coding_language
        return None

    # ── Text inputs ──────────────────────────────────────────────────

    def process_transcription(self, text: str) -> AssistantResult:
        """Spoken input: record it, honour the trigger phrase, whisper an answer."""
        clean = text.strip() if isinstance(text, str) else ""
        if len(clean) < MIN_INPUT_CHARS:
            return self._rejected("Transcription too short to process")

        history = self.memory.get_optimized_history()
        follow_up = self._follow_up_context() if self.state.state.follow_up_mode else ""
        self.memory.add_user_input(clean, source="speech")

        if self.trigger_phrase and self.trigger_phrase in clean.lower():
            logger.info("Trigger phrase detected: %r", self.trigger_phrase)
            prompt_text = clean.lower().replace(self.trigger_phrase, "", 1).strip() or TRIGGER_DEFAULT_TEXT
            result = self._copilot(prompt_text, history, follow_up="", label="NEW USER MESSAGE")
            self._record_answer(result, is_trigger_response=True)
            return result

        result = self._copilot(clean, history, follow_up=follow_up, label="NEW USER MESSAGE")
        self._record_answer(result, is_transcription_response=True)
        return result

    def process_chat(self, text: str) -> AssistantResult:
        """Typed chat message answered in co-pilot style."""
        clean = text.strip() if isinstance(text, str) else ""
        if not clean:
            return self._rejected("Empty chat message")

        history = self.memory.get_optimized_history()
        follow_up = self._follow_up_context() if self.state.state.follow_up_mode else ""
        self.memory.add_user_input(clean, source="chat")
        result = self._copilot(clean, history, follow_up=follow_up, label="NEW USER MESSAGE")
        self._record_answer(result)
        return result

    def process_text(self, text: str, complexity: str | None = None) -> AssistantResult:
        """Free text answered with the skill prompt and a complexity layer."""
        clean = text.strip() if isinstance(text, str) else ""
        if not clean:
            return self._rejected("Empty text input")

        level = complexity or self.state.state.response_complexity
        history = self.memory.get_optimized_history()
        follow_up = self._follow_up_context() if self.state.state.follow_up_mode else ""
        self.memory.add_user_input(clean, source="llm_input")
        result = self._complete_text(clean, level, history, follow_up=follow_up)
        self._record_answer(result)
        return result

    def generate_layered_response(self, text: str) -> LayeredResponse | AssistantResult:
        """Short, medium and long answers generated concurrently; memory is untouched."""
        clean = text.strip() if isinstance(text, str) else ""
        if not clean:
            return self._rejected("Empty text input")

        history = self.memory.get_optimized_history()
        with ThreadPoolExecutor(max_workers=len(COMPLEXITIES), thread_name_prefix="dv-layer") as pool:
            futures = {
                level: pool.submit(self._complete_text, clean, level, history) for level in COMPLEXITIES
            }
            results = {level: future.result() for level, future in futures.items()}

        models = {r.metadata.model_used for r in results.values()}
        metadata = ResponseMetadata(
            processing_time=max(r.metadata.processing_time for r in results.values()),
            model_used=models.pop() if len(models) == 1 else self.primary_model,
            used_fallback=any(r.metadata.used_fallback for r in results.values()),
            skill=self.skill,
        )
        return LayeredResponse(
            hint=results["short"].text,
            explain=results["medium"].text,
            deep_dive=results["long"].text,
            metadata=metadata,
        )

    # ── Screen capture ───────────────────────────────────────────────

    def process_screen_capture(self, image_bytes: bytes | None, mime_type: str | None = "image/png") -> AssistantResult:
        """Vision extraction, classification and a two-part structured answer."""
        try:
            payload = ImagePayload.from_bytes(image_bytes, mime_type, min_bytes=self.min_image_bytes)
        except InvalidPayloadError as exc:
            logger.warning("Rejected capture payload: %s", exc)
            return self._rejected(str(exc))

        started = time.perf_counter()
        follow_up_mode = self.state.state.follow_up_mode
        if not follow_up_mode:
            self.memory.clear_conversation()

        history = self.memory.get_optimized_history()
        follow_up = self._follow_up_context() if follow_up_mode else ""
        skill = self.skill
        self.state.record_request(self.memory.clock())

        if self.executor is None or self.extractor is None:
            result = self._canned(skill, started, error=None, detected_type=self.classifier.default_for_mode(skill))
            self._record_answer(result, is_image_analysis=True)
            return result

        try:
            extraction = self.extractor.extract(payload)
        except LLMError as exc:
            self.state.record_error()
            logger.error("Screen text extraction failed: %s", exc)
            result = self._canned(skill, started, error=str(exc), detected_type=self.classifier.default_for_mode(skill))
            self._record_answer(result, is_image_analysis=True)
            return result

        extracted_text = extraction.text.strip()
        classification = self.classifier.classify(extracted_text, skill)
        detected_type = classification.detected_type

        system_prompt = prompts.build_structured_prompt(detected_type, self._language())
        user_message = extracted_text
        if follow_up_mode:
            system_prompt += "\n\n" + prompts.FOLLOW_UP_INSTRUCTION
            user_message = with_follow_up(extracted_text, follow_up, label="NEW SCREEN CONTENT")
        messages = build_messages(system_prompt, user_message, history.recent if follow_up_mode else [])
        generation = self.generation.with_overrides(temperature=0.5, max_tokens=4096)

        try:
            execution = self.executor.execute(ModelRequest(messages=messages, generation=generation), self.text_models)
        except LLMError as exc:
            self.state.record_error()
            logger.error("Structured capture response failed: %s", exc)
            result = self._canned(skill, started, error=str(exc), detected_type=detected_type)
            result.extracted_text = extracted_text
            result.metadata.vision_model = extraction.model_used
        else:
            parts = split_structured_response(execution.text)
            result = AssistantResult(
                success=True,
                text=execution.text,
                part_a=parts.part_a,
                part_b=parts.part_b,
                detected_type=detected_type,
                extracted_text=extracted_text,
                metadata=ResponseMetadata(
                    processing_time=self._elapsed_ms(started),
                    model_used=execution.model_used,
                    is_follow_up=follow_up_mode,
                    skill=skill,
                    vision_model=extraction.model_used,
                    is_structured=True,
                ),
            )
            logger.info(
                "Structured capture answered type=%s part_a=%d part_b=%d follow_up=%s",
                detected_type,
                len(parts.part_a),
                len(parts.part_b),
                follow_up_mode,
            )

        if extracted_text:
            self.memory.add_ocr_event(extracted_text, detected_type=detected_type)
        self._record_answer(result, is_image_analysis=True)
        return result

    # ── Session and toggles ──────────────────────────────────────────

    def start_session(self, mode: str | None = None) -> SessionTimer:
        return self.memory.start_session(mode)

    def end_session(self) -> SessionSummary:
        return self.memory.end_session()

    def session_timer(self) -> SessionTimer:
        self.memory.check_deadline()
        return self.memory.get_session_timer()

    def set_active_skill(self, skill: str) -> Event:
        if skill not in self.available_modes:
            raise ValueError(f"Unknown interview mode: {skill}")
        return self.memory.set_active_skill(skill)

    def cycle_skill(self, direction: int = 1) -> str:
        """Step through the available modes, wrapping at either end."""
        modes = self.available_modes
        index = modes.index(self.skill) if self.skill in modes else 0
        target = modes[(index + (1 if direction >= 0 else -1)) % len(modes)]
        self.memory.set_active_skill(target)
        return target

    def toggle_follow_up(self) -> bool:
        enabled = self.state.toggle_follow_up()
        if not enabled:
            self.memory.clear()
            logger.info("Follow-up mode off; session memory cleared")
        else:
            logger.info("Follow-up mode on; retaining context")
        return enabled

    def set_auto_recapture(self, enabled: bool) -> bool:
        self.state.set_auto_recapture(enabled)
        return enabled

    def set_complexity(self, complexity: str) -> str:
        if complexity not in prompts.COMPLEXITY_LAYERS:
            raise ValueError(f"Unknown response complexity: {complexity}")
        self.state.set_complexity(complexity)
        return complexity

    def history(self, limit: int = 15) -> HistorySnapshot:
        return self.memory.get_optimized_history(limit)

    def recall(self, query: str) -> list[RecallHit]:
        return self.memory.recall_topic(query)

    def test_connection(self) -> dict[str, Any]:
        if self.llm is None:
            return {"success": False, "error": "Client not initialized. Check your GROQ_API_KEY."}
        started = time.perf_counter()
        try:
            reply = self.llm.chat(
                [{"role": "user", "content": prompts.CONNECTION_PROBE}],
                model=self.primary_model,
                max_tokens=20,
                temperature=0,
            )
        except LLMError as exc:
            return {"success": False, "error": str(exc), "status": exc.status}
        return {
            "success": True,
            "response": reply.strip(),
            "response_time": self._elapsed_ms(started),
            "model": self.primary_model,
        }

    def stats(self) -> dict[str, Any]:
        return {
            "is_initialized": self.llm is not None,
            "model": self.primary_model,
            "provider": self.llm.name if self.llm else None,
            "request_count": self.state.state.request_count,
            "error_count": self.state.state.error_count,
            "follow_up_mode": self.state.state.follow_up_mode,
            "auto_recapture": self.state.state.auto_recapture,
            "memory": self.memory.memory_usage(),
        }

    # ── Internals ────────────────────────────────────────────────────

    def _follow_up_context(self) -> str:
        return self.memory.get_follow_up_context(3)

    def _copilot(self, text: str, history: HistorySnapshot, follow_up: str, label: str) -> AssistantResult:
        system_prompt = prompts.build_copilot_prompt(self.skill, self._language())
        is_follow_up = bool(follow_up)
        if is_follow_up:
            system_prompt += "\n\n" + prompts.FOLLOW_UP_INSTRUCTION
        generation = self.generation.with_overrides(max_tokens=500 if is_follow_up else 300, temperature=0.5)
        return self._generate(
            system_prompt,
            with_follow_up(text, follow_up, label=label),
            history.recent,
            generation,
            complexity="medium",
            is_follow_up=is_follow_up,
        )

    def _complete_text(
        self,
        text: str,
        complexity: str,
        history: HistorySnapshot,
        follow_up: str = "",
    ) -> AssistantResult:
        system_prompt = prompts.build_system_prompt(self.skill, complexity, self._language())
        if follow_up:
            system_prompt += "\n\n" + prompts.FOLLOW_UP_INSTRUCTION
        overrides = prompts.COMPLEXITY_GENERATION.get(complexity, {})
        return self._generate(
            system_prompt,
            with_follow_up(text, follow_up),
            history.recent,
            self.generation.with_overrides(**overrides),
            complexity=complexity,
            is_follow_up=bool(follow_up),
        )

    def _generate(
        self,
        system_prompt: str,
        user_message: str,
        context: Sequence[Event],
        generation: GenerationConfig,
        complexity: str,
        is_follow_up: bool,
    ) -> AssistantResult:
        started = time.perf_counter()
        skill = self.skill
        self.state.record_request(self.memory.clock())
        if self.executor is None:
            return self._canned(skill, started, error=None, complexity=complexity)

        request = ModelRequest(messages=build_messages(system_prompt, user_message, context), generation=generation)
        try:
            execution = self.executor.execute(request, self.text_models)
        except LLMError as exc:
            self.state.record_error()
            logger.error("Text generation failed skill=%s complexity=%s: %s", skill, complexity, exc)
            return self._canned(skill, started, error=str(exc), complexity=complexity)

        logger.info(
            "Response generated skill=%s complexity=%s model=%s chars=%d",
            skill,
            complexity,
            execution.model_used,
            len(execution.text),
        )
        return AssistantResult(
            success=True,
            text=execution.text,
            metadata=ResponseMetadata(
                processing_time=self._elapsed_ms(started),
                model_used=execution.model_used,
                is_follow_up=is_follow_up,
                skill=skill,
                complexity=complexity,
            ),
        )

    def _canned(
        self,
        skill: str,
        started: float,
        error: str | None,
        complexity: str | None = None,
        detected_type: str | None = None,
    ) -> AssistantResult:
        if error is None:
            logger.warning("No model backend configured; answering with canned response")
        return AssistantResult(
            success=True,
            error=error,
            text=prompts.canned_response(skill),
            detected_type=detected_type,
            metadata=ResponseMetadata(
                processing_time=self._elapsed_ms(started),
                model_used=FALLBACK_MODEL,
                used_fallback=True,
                skill=skill,
                complexity=complexity,
            ),
        )

    def _record_answer(self, result: AssistantResult, **extra: Any) -> None:
        metadata = result.metadata
        self.memory.add_model_response(
            result.text,
            processing_time=metadata.processing_time,
            used_fallback=metadata.used_fallback,
            model_used=metadata.model_used,
            detected_type=result.detected_type,
            **extra,
        )
        if self.event_bus is not None:
            self.event_bus.emit(RESPONSE_READY, {"result": result})

    def _rejected(self, reason: str) -> AssistantResult:
        logger.warning("Input rejected: %s", reason)
        return AssistantResult(success=False, error=reason, metadata=ResponseMetadata(skill=self.skill))

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.perf_counter() - started) * 1000)
