"""Vision text extraction through the model fallback chain."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from llm.fallback_executor import ExecutionResult, GenerationConfig, ModelFallbackExecutor, ModelRequest
from llm.prompt_engine.prompts import VISUAL_EXTRACTION_PROMPT, VISUAL_EXTRACTION_REQUEST
from vision.image_payload import ImagePayload

logger = logging.getLogger("dv.vision.extractor")

DEFAULT_VISION_MODELS = (
    "meta-llama/llama-4-scout-17b-16e-instruct",
    "llama-3.2-11b-vision-preview",
    "llama-3.2-90b-vision-preview",
)

VISION_GENERATION = GenerationConfig(temperature=0.1, max_tokens=2048)


class ScreenTextExtractor:
    """Turns a capture payload into plain text using vision-capable models."""

    def __init__(
        self,
        executor: ModelFallbackExecutor,
        models: Sequence[str] = DEFAULT_VISION_MODELS,
        generation: GenerationConfig = VISION_GENERATION,
    ) -> None:
        self.executor = executor
        self.models = list(models)
        self.generation = generation

    def build_messages(self, payload: ImagePayload) -> list[dict[str, Any]]:
        return [
            {"role": "system", "content": VISUAL_EXTRACTION_PROMPT},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": VISUAL_EXTRACTION_REQUEST},
                    payload.as_content_part(),
                ],
            },
        ]

    def extract(self, payload: ImagePayload) -> ExecutionResult:
        """Each vision model gets a single attempt before the next is tried.

        Raises:
            AllModelsFailedError: when no vision model returns text.
        """
        request = ModelRequest(messages=self.build_messages(payload), generation=self.generation)
        result = self.executor.execute(request, self.models, max_retries=1)
        logger.info("Vision extraction via %s produced %d chars", result.model_used, len(result.text))
        return result
