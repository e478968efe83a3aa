"""Pydantic models for generation and export requests."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ExportFormat(str, Enum):
    """Supported export artifact formats."""
    SVG = "svg"
    PNG = "png"
    JPEG = "jpeg"

    @property
    def content_type(self) -> str:
        return CONTENT_TYPES[self]


CONTENT_TYPES = {
    ExportFormat.SVG: "image/svg+xml",
    ExportFormat.PNG: "image/png",
    ExportFormat.JPEG: "image/jpeg",
}


class DiagramPrompt(BaseModel):
    """Canonical provider request: fixed system instruction plus user text."""
    model_config = ConfigDict(frozen=True)

    system: str
    user: str

    def as_completion(self) -> str:
        """Single-string form for backends without a system role."""
        return f"{self.system}\n\n{self.user}\n\nGenerate the Mermaid diagram code now:"


class GenerationRequest(BaseModel):
    """A user submission: description of the diagram to generate."""
    model_config = ConfigDict(frozen=True)

    description: str = Field(..., min_length=1)

    @field_validator("description")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Description is required")
        return value


class GenerationResult(BaseModel):
    """Normalized diagram markup produced by a provider."""
    model_config = ConfigDict(frozen=True)

    mermaid_code: str = Field(..., serialization_alias="mermaidCode")
    provider: str
    diagram_type: Optional[str] = None


class ExportRequest(BaseModel):
    """Markup to render plus the requested artifact format."""
    model_config = ConfigDict(frozen=True)

    mermaid_code: str = Field(..., min_length=1)
    format: ExportFormat


class ExportArtifact(BaseModel):
    """Rendered diagram payload, streamed to the caller and never stored."""
    model_config = ConfigDict(frozen=True)

    content: bytes
    content_type: str
    filename: str

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")
