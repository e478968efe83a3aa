"""Extract clean Mermaid markup from raw generative output.

Models rarely follow "return only the code" instructions exactly: answers
arrive wrapped in markdown fences, preceded by chatter, or both. Every
provider hands its raw text to :func:`normalize`, so there is one place
that decides what counts as diagram markup.
"""

import re
from typing import Optional

# Diagram-type tokens a Mermaid document may start with (case-sensitive prefixes)
DIAGRAM_TYPES = (
    "graph",
    "flowchart",
    "sequenceDiagram",
    "classDiagram",
    "stateDiagram",
    "erDiagram",
    "gantt",
    "pie",
    "gitGraph",
    "journey",
    "mindmap",
    "timeline",
)

# A fence, plus a "mermaid" label wherever it sits, or any other language
# label only when it ends its line, plus any whitespace that follows.
_FENCE_RE = re.compile(
    r"```[ \t]*(?:mermaid(?![\w+.-])|[\w+.-]+[ \t]*(?=\r?\n|$))?\s*",
    re.IGNORECASE,
)


def strip_fences(text: str) -> str:
    """Remove every opening and closing markdown fence, wherever it occurs."""
    return _FENCE_RE.sub("", text)


def detect_diagram_type(line: str) -> Optional[str]:
    """Return the diagram-type token ``line`` starts with, if any."""
    stripped = line.strip()
    for token in DIAGRAM_TYPES:
        if stripped.startswith(token):
            return token
    return None


def normalize(raw: Optional[str]) -> str:
    """Turn raw model output into Mermaid markup.

    Pure and total: text without any recognizable diagram type comes back
    fence-stripped rather than raising.
    """
    code = strip_fences((raw or "").strip())

    lines = code.split("\n")
    first = next((line for line in lines if line.strip()), "")
    if detect_diagram_type(first) is None:
        for i, line in enumerate(lines):
            if detect_diagram_type(line) is not None:
                code = "\n".join(lines[i:])
                break

    return code.strip()
