"""Error taxonomy shared by generation and export."""

from typing import Optional


class MermaidStudioError(Exception):
    """Base class for every error surfaced to callers."""


class ValidationError(MermaidStudioError):
    """Malformed or out-of-range input."""


class ConfigError(MermaidStudioError):
    """Missing credentials or unsupported model identifier, detected before any call."""


class BackendError(MermaidStudioError):
    """A remote generation call failed (network, auth, or backend-side)."""

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider


class RenderError(MermaidStudioError):
    """The rendering sandbox did not produce the expected output."""


class RenderTimeoutError(RenderError):
    """The rendered output node did not appear within the readiness bound."""
