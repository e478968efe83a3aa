"""Prompt text sent to every generation backend.

All providers share one canonical prompt so that differences in output come
from the backend, not from the wording of the request.
"""

from .models import DiagramPrompt

SYSTEM_PROMPT = (
    "You are a Mermaid diagram expert. Generate ONLY valid Mermaid diagram code "
    "based on the user's description. Do not include any explanations, comments, "
    "or markdown code blocks. Return only the raw Mermaid syntax."
)

USER_PROMPT_TEMPLATE = "User description: {description}"

# Sampling parameters shared by all backends
TEMPERATURE = 0.7
TOP_P = 0.9
MAX_TOKENS = 2000


def build_prompt(description: str) -> DiagramPrompt:
    """Build the canonical prompt for a diagram description."""
    return DiagramPrompt(
        system=SYSTEM_PROMPT,
        user=USER_PROMPT_TEMPLATE.format(description=description.strip()),
    )
