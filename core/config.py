"""Configuration defaults and YAML overrides."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "session": {
        "max_memory_size": 1000,
        "compression_threshold": 500,
        "max_duration_minutes": 240,
    },
    "interview": {
        "default_mode": "system-design",
        "available_modes": ["system-design", "technical-screening", "dsa"],
        "trigger_phrase": "deep help",
        "coding_language": "python",
        "response_complexity": "medium",
    },
    "llm": {
        "provider": "groq",
        "groq": {
            "model": "llama-3.3-70b-versatile",
            "fallback_models": ["llama-3.1-8b-instant", "gemma2-9b-it"],
            "vision_models": [
                "meta-llama/llama-4-scout-17b-16e-instruct",
                "llama-3.2-11b-vision-preview",
                "llama-3.2-90b-vision-preview",
            ],
            "max_retries": 3,
            "retry_base_delay": 1.0,
            "timeout": 30.0,
        },
        "generation": {
            "temperature": 0.7,
            "top_p": 0.9,
            "max_tokens": 4096,
        },
    },
    "capture": {
        "min_image_bytes": 100,
        "follow_up_mode": True,
    },
}


def load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML from file, returning empty mapping when missing."""
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return data


def merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge dictionaries."""
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_effective_config(root: Path, overrides: dict[str, Any] | None = None) -> dict[str, Any]:
    """Built-in defaults, then ``config/default.yaml``, then explicit overrides."""
    merged = merge_dicts(copy.deepcopy(DEFAULT_CONFIG), load_yaml(root / "config" / "default.yaml"))
    if overrides:
        merged = merge_dicts(merged, overrides)
    return merged


def section(config: dict[str, Any], *keys: str) -> dict[str, Any]:
    """Nested mapping lookup that tolerates missing levels."""
    node: Any = config
    for key in keys:
        node = node.get(key, {}) if isinstance(node, dict) else {}
    return node if isinstance(node, dict) else {}
