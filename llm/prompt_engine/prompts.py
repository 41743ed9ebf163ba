"""Prompt library: skill prompts, complexity layers, structured capture prompts."""

from __future__ import annotations

from typing import Any

SKILL_PROMPTS: dict[str, str] = {
    "system-design": (
        "You are assisting a candidate in a system design interview. Steer toward "
        "requirements, capacity estimates, a high-level component diagram, data "
        "modelling, and the trade-offs between consistency, availability and cost."
    ),
    "technical-screening": (
        "You are assisting a candidate in a technical screening. Favour correct, "
        "readable solutions, call out edge cases, and state time and space complexity."
    ),
    "dsa": (
        "You are assisting a candidate with data structures and algorithms problems. "
        "Identify the pattern first, then give the optimal approach with complexity."
    ),
}

SKILL_FOCUS: dict[str, str] = {
    "system-design": (
        "Scalability patterns, load balancers, database choices, caching strategies, CAP theorem, "
        "microservices, message queues, consistency models, rate limiting, sharding"
    ),
    "technical-screening": (
        "Algorithm optimization, data structure selection, time/space complexity, edge cases, "
        "code correctness, design patterns"
    ),
    "dsa": "Data structures, algorithms, optimal complexity, clean implementations",
}

INTERVIEW_ASSISTANT_PROMPT = """\
You are a technical interview assistant. Help the candidate explain technical
concepts the way a strong engineer would say them out loud: precise, calm and
conversational.

Structure every technical answer with these headings, written exactly:

Definition:
Plain-language explanation in at most two short sentences.

How it works:
Two or three sentences describing the practical flow, step by step.

Real-world example:
One concrete, relatable example in one or two sentences.

Keep the whole answer to five to eight sentences. Avoid filler words, hedging
and apologies. If the question is ambiguous, pick the most common
interpretation and proceed.
"""

COMPLEXITY_LAYERS: dict[str, str] = {
    "short": (
        "RESPONSE FORMAT: You are whispering a quick hint. Give a single concise sentence, "
        "no markdown, no bullets. Maximum 15 words."
    ),
    "medium": (
        INTERVIEW_ASSISTANT_PROMPT
        + "\nRESPONSE FORMAT: Give 2-4 natural sentences following the Definition / How it works / "
        "Real-world example format, no markdown, no bullets."
    ),
    "long": (
        INTERVIEW_ASSISTANT_PROMPT
        + "\nRESPONSE FORMAT: Use markdown and follow the three-part structure for each concept "
        "covered. Be thorough but focused."
    ),
}

# Sampling overrides per complexity; "long" uses the configured defaults.
COMPLEXITY_GENERATION: dict[str, dict[str, Any]] = {
    "short": {"max_tokens": 100, "temperature": 0.3},
    "medium": {"max_tokens": 500, "temperature": 0.5},
    "long": {},
}

FOLLOW_UP_INSTRUCTION = (
    "IMPORTANT: This is a FOLLOW-UP message. The previous questions and your answers are "
    "provided with the message. Build on your previous answers, do NOT repeat yourself, and "
    "extend the prior discussion."
)

VISUAL_EXTRACTION_PROMPT = """\
STRICT PERSONA: You are a visual data extractor. Your single task is to pull all readable text from the screenshot.
1. FULL SCAN: Read the entire image from top-left to bottom-right. Do not summarize.
2. COMPLETE TRANSCRIPTION: Extract every word, number and label, including headers and fine print.
3. PRESERVE FORMATTING: Keep lists as lists and keep spatial structure where possible.
4. UNCLEAR TEXT: Mark blurry or unreadable text as [unclear].
5. GRAPHS/CHARTS: Describe data points and values in text form.
6. CODE: Transcribe code exactly, preserving indentation.
7. DIAGRAMS: Describe components, connections and labels.
8. NO VISUAL COMMENTARY: Start immediately with the extracted data."""

VISUAL_EXTRACTION_REQUEST = (
    "Perform a COMPLETE DATA EXTRACTION on this screenshot. Extract all text, code, labels, "
    "diagrams and numbers. NO COMMENTARY."
)

STRUCTURED_PROMPTS: dict[str, str] = {
    "design": """\
Analyze this content from a system design interview. Respond in two parts:
## Part A — What to Say to the Interviewer
Bulleted list of what to say step by step: clarify requirements, define scope, high-level design, deep dive, trade-offs.
## Part B — Solution Architecture
Detailed architecture breakdown with components, data flow, scaling strategy and trade-offs.""",
    "coding": """\
Analyze this content from a coding interview. Respond in two parts:
## Part A — What to Say to the Interviewer
Bulleted list of what to say: restate the problem, clarify edge cases, identify the pattern, explain the approach, state complexity.
## Part B — Solution Code & Explanation
Optimal solution code with an explanation of the approach and complexity analysis.""",
}

CANNED_RESPONSES: dict[str, str] = {
    "system-design": (
        "Consider the scalability implications here. Think about read versus write patterns, "
        "caching layers, and whether you need strong or eventual consistency."
    ),
    "technical-screening": (
        "Think about the time complexity of your approach. Could a different data structure, "
        "such as a hash map or a heap, make it faster?"
    ),
    "dsa": (
        "Look for the underlying pattern first: is this a sliding window, two pointers, or a "
        "dynamic programming problem?"
    ),
}

CONNECTION_PROBE = 'Say "DeepVoice connected" in exactly those words.'


def language_instruction(programming_language: str | None) -> str:
    if not programming_language:
        return ""
    return f"\n\nWhen providing code, use {programming_language} only."


def build_system_prompt(
    skill: str,
    complexity: str = "medium",
    programming_language: str | None = None,
) -> str:
    """Skill prompt plus the complexity layer for text answers."""
    base = SKILL_PROMPTS.get(skill, "")
    layer = COMPLEXITY_LAYERS.get(complexity, COMPLEXITY_LAYERS["medium"])
    prompt = f"{base}\n\n{layer}" if base else layer
    return prompt + language_instruction(programming_language)


def build_copilot_prompt(skill: str, programming_language: str | None = None) -> str:
    """Co-pilot whisper prompt used for spoken and chat questions."""
    focus = SKILL_FOCUS.get(skill, SKILL_FOCUS["dsa"])
    prompt = f"{INTERVIEW_ASSISTANT_PROMPT}\nFOCUS AREAS for {skill}:\n- {focus}"
    if programming_language:
        prompt += f"\n\nIf code is needed, use {programming_language} only."
    return prompt


def build_structured_prompt(detected_type: str, programming_language: str | None = None) -> str:
    """Two-part (Part A / Part B) prompt for screen captures."""
    prompt = STRUCTURED_PROMPTS.get(detected_type, STRUCTURED_PROMPTS["coding"])
    return prompt + language_instruction(programming_language)


def canned_response(skill: str) -> str:
    return CANNED_RESPONSES.get(skill, CANNED_RESPONSES["dsa"])
