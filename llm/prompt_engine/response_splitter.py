"""Best-effort split of a two-part ("Part A" / "Part B") model reply."""

from __future__ import annotations

import re

from pydantic import BaseModel

# Optional #..### heading, optional bold, optional separator, rest of the heading line.
_HEADING = r"(?:#{{1,3}}[ \t]*)?(?:\*{{1,2}})?Part[ \t]*{label}(?:\*{{1,2}})?[ \t—\-:]*[^\r\n]*[\r\n]+"

PART_A_RE = re.compile(
    r"(?:^|\n)"
    + _HEADING.format(label="A")
    + r"(.*?)(?=(?:#{0,3}[ \t]*)?(?:\*{1,2})?Part[ \t]*B|\Z)",
    re.IGNORECASE | re.DOTALL,
)
PART_B_RE = re.compile(
    r"(?:^|\n)" + _HEADING.format(label="B") + r"(.*)\Z",
    re.IGNORECASE | re.DOTALL,
)


class StructuredParts(BaseModel):
    """Spoken talking points (A) and detailed solution (B)."""

    part_a: str = ""
    part_b: str = ""


def split_structured_response(text: str) -> StructuredParts:
    """Extract both labelled sections.

    Neither section yields content: the whole reply becomes part B. One label
    found: only that part is populated.
    """
    if not text:
        return StructuredParts()
    match_a = PART_A_RE.search(text)
    match_b = PART_B_RE.search(text)
    part_a = match_a.group(1).strip() if match_a else ""
    part_b = match_b.group(1).strip() if match_b else ""
    if not part_a and not part_b:
        return StructuredParts(part_a="", part_b=text)
    return StructuredParts(part_a=part_a, part_b=part_b)
