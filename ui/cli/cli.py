"""CLI entrypoint for the interview assistant."""

from __future__ import annotations

from pathlib import Path

import typer

from ui.cli import commands

app = typer.Typer(help="Real-time interview assistant")
session_app = typer.Typer(help="Interview session commands")
memory_app = typer.Typer(help="Memory commands")
config_app = typer.Typer(help="Configuration commands")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    provider: str = typer.Option(None, "--provider", help="Override llm.provider (groq, openai, mock)"),
    root: Path = typer.Option(None, "--root", help="Directory holding config/default.yaml"),
) -> None:
    commands.configure(verbose=verbose, provider=provider, root=root)


@app.command("chat")
def chat_cmd() -> None:
    """Interactive chat session."""
    commands.chat()


@app.command("ask")
def ask_cmd(
    text: str = typer.Argument(..., help="Question to answer"),
    complexity: str = typer.Option(None, "--complexity", help="short, medium or long"),
    layered: bool = typer.Option(False, "--layered", help="Generate all three complexities"),
    mode: str = typer.Option(None, "--mode", help="Interview mode"),
) -> None:
    """Answer a single question."""
    commands.ask(text=text, complexity=complexity, layered=layered, mode=mode)


@app.command("capture")
def capture_cmd(
    image: Path = typer.Argument(..., exists=True, dir_okay=False, help="Screenshot file"),
    mode: str = typer.Option(None, "--mode", help="Interview mode"),
    language: str = typer.Option(None, "--language", help="Language for code answers"),
) -> None:
    """Extract a question from a screenshot and answer it in two parts."""
    commands.capture(image_path=image, mode=mode, language=language)


@session_app.command("start")
def session_start_cmd(mode: str = typer.Option(None, "--mode", help="Interview mode")) -> None:
    """Start a timed interview session."""
    commands.session_start(mode=mode)


@session_app.command("demo")
def session_demo_cmd(mode: str = typer.Option("system-design", "--mode")) -> None:
    """Run a scripted offline session."""
    commands.session_demo(mode=mode)


@memory_app.command("inspect")
def memory_inspect_cmd(
    limit: int = typer.Option(15, min=1, max=100),
    transcript: Path = typer.Option(None, "--transcript", exists=True, dir_okay=False),
    full: bool = typer.Option(False, "--full", help="Include system events in the conversation dump"),
) -> None:
    """Inspect memory state."""
    commands.memory_inspect(limit=limit, transcript=transcript, full=full)


@memory_app.command("recall")
def memory_recall_cmd(
    query: str = typer.Argument(..., help="Topic or text to recall"),
    transcript: Path = typer.Option(None, "--transcript", exists=True, dir_okay=False),
) -> None:
    """Recall earlier discussion of a topic."""
    commands.memory_recall(query=query, transcript=transcript)


@config_app.command("show")
def config_show_cmd() -> None:
    """Show effective configuration."""
    commands.config_show()


app.add_typer(session_app, name="session")
app.add_typer(memory_app, name="memory")
app.add_typer(config_app, name="config")


def main() -> None:
    """Console script entrypoint."""
    app()


if __name__ == "__main__":
    main()
