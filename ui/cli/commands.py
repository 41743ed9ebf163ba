"""Typer command handlers."""

from __future__ import annotations

import json
import logging
import mimetypes
from pathlib import Path
from typing import Any

import typer
from pydantic import BaseModel

from core.orchestrator import Orchestrator, RuntimeBundle
from core.pipeline import AssistantResult, LayeredResponse

_OPTIONS: dict[str, Any] = {"provider": None, "root": None}

DEMO_SCRIPT = (
    "How would you shard a users table for a social network?",
    "deep help consistent hashing",
    "What caching strategy fits a read-heavy timeline?",
)


def configure(verbose: bool = False, provider: str | None = None, root: Path | None = None) -> None:
    """Apply global CLI options before any command runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _OPTIONS["provider"] = provider
    _OPTIONS["root"] = root


def _runtime(provider: str | None = None) -> RuntimeBundle:
    chosen = provider or _OPTIONS["provider"]
    overrides = {"llm": {"provider": chosen}} if chosen else None
    return Orchestrator(root=_OPTIONS["root"], overrides=overrides).build()


def _print_result(result: AssistantResult) -> None:
    if not result.success:
        typer.echo(f"error: {result.error}", err=True)
        return
    if result.metadata.is_structured:
        typer.echo(f"[{result.detected_type}] via {result.metadata.model_used}")
        typer.echo("--- What to say ---")
        typer.echo(result.part_a or "(none)")
        typer.echo("--- Solution ---")
        typer.echo(result.part_b or "(none)")
        return
    tag = " (fallback)" if result.metadata.used_fallback else ""
    typer.echo(f"assistant{tag}: {result.text}")


def chat() -> None:
    """Run interactive chat loop."""
    bundle = _runtime()
    typer.echo("Chat mode. Type 'exit' to quit, '/skill' to cycle interview mode.")
    while True:
        user_text = typer.prompt("you")
        command = user_text.strip().lower()
        if command in {"exit", "quit"}:
            typer.echo("bye")
            break
        if command == "/skill":
            typer.echo(f"mode: {bundle.pipeline.cycle_skill()}")
            continue
        if command == "/followup":
            typer.echo(f"follow-up: {'on' if bundle.pipeline.toggle_follow_up() else 'off'}")
            continue
        _print_result(bundle.pipeline.process_chat(user_text))


def ask(text: str, complexity: str | None = None, layered: bool = False, mode: str | None = None) -> None:
    """Answer one question."""
    bundle = _runtime()
    if mode:
        bundle.pipeline.set_active_skill(mode)
    if layered:
        layered_result = bundle.pipeline.generate_layered_response(text)
        if isinstance(layered_result, LayeredResponse):
            typer.echo(f"hint: {layered_result.hint}")
            typer.echo(f"explain: {layered_result.explain}")
            typer.echo(f"deep dive:\n{layered_result.deep_dive}")
        else:
            _print_result(layered_result)
        return
    if complexity:
        try:
            bundle.pipeline.set_complexity(complexity)
        except ValueError as exc:
            typer.echo(f"error: {exc}", err=True)
            raise typer.Exit(code=2) from exc
    _print_result(bundle.pipeline.process_text(text))


def capture(image_path: Path, mode: str | None = None, language: str | None = None) -> None:
    """Analyze a saved screenshot."""
    bundle = _runtime()
    if mode:
        bundle.pipeline.set_active_skill(mode)
    if language:
        bundle.state.set_coding_language(language)
    mime_type = mimetypes.guess_type(image_path.name)[0] or "image/png"
    result = bundle.pipeline.process_screen_capture(image_path.read_bytes(), mime_type)
    _print_result(result)
    if result.extracted_text:
        typer.echo("--- Extracted ---")
        typer.echo(result.extracted_text)


def session_start(mode: str | None = None) -> None:
    """Start a timed session and answer transcribed lines until 'end'."""
    bundle = _runtime()
    timer = bundle.pipeline.start_session(mode)
    typer.echo(f"Session started ({bundle.memory.active_skill}); {timer.remaining_formatted} remaining.")
    typer.echo("Type a line as if it were transcribed speech. 'end' finishes the session.")
    while bundle.memory.session_active:
        line = typer.prompt("heard")
        if line.strip().lower() in {"end", "exit", "quit"}:
            break
        _print_result(bundle.pipeline.process_transcription(line))
        typer.echo(f"[{bundle.pipeline.session_timer().formatted}]")
    summary = bundle.memory.last_summary if not bundle.memory.session_active else bundle.pipeline.end_session()
    typer.echo(json.dumps(_json_safe(summary), indent=2))


def session_demo(mode: str = "system-design") -> None:
    """Scripted session against the offline mock provider."""
    bundle = _runtime(provider="mock")
    bundle.pipeline.start_session(mode)
    for line in DEMO_SCRIPT:
        typer.echo(f"heard: {line}")
        _print_result(bundle.pipeline.process_transcription(line))
    hits = bundle.pipeline.recall("cach")
    typer.echo(f"recall 'cach': {len(hits)} hit(s)")
    summary = bundle.pipeline.end_session()
    typer.echo(json.dumps(_json_safe(summary), indent=2))


def _replay(bundle: RuntimeBundle, transcript: Path | None) -> None:
    if transcript is None:
        return
    for line in transcript.read_text(encoding="utf-8").splitlines():
        if line.strip():
            bundle.pipeline.process_chat(line)


def memory_inspect(limit: int = 15, transcript: Path | None = None, full: bool = False) -> None:
    """Inspect memory state, optionally after replaying a transcript file."""
    bundle = _runtime()
    _replay(bundle, transcript)
    data = {
        "usage": bundle.memory.memory_usage(),
        "history": bundle.pipeline.history(limit),
        "recent": bundle.memory.get_recent_events(limit),
    }
    if full:
        data["conversation"] = bundle.memory.get_full_conversation_history()
    else:
        data["conversation"] = bundle.memory.get_conversation_history(limit)
    typer.echo(json.dumps(_json_safe(data), indent=2))


def memory_recall(query: str, transcript: Path | None = None) -> None:
    """Recall topics and direct matches for a query."""
    bundle = _runtime()
    _replay(bundle, transcript)
    hits = bundle.pipeline.recall(query)
    typer.echo(json.dumps(_json_safe(hits), indent=2))


def config_show() -> None:
    """Show effective runtime config."""
    bundle = _runtime()
    typer.echo(json.dumps(_json_safe(bundle.config), indent=2))


def _json_safe(payload: object) -> object:
    """Convert models and enums to JSON-friendly values."""
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json")
    if isinstance(payload, dict):
        return {k: _json_safe(v) for k, v in payload.items()}
    if isinstance(payload, (list, tuple)):
        return [_json_safe(v) for v in payload]
    return payload
