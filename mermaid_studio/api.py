"""HTTP surface: generate and export endpoints.

  POST /api/generate  {description, settings}   -> {mermaidCode}
  POST /api/export    {mermaidCode, format}     -> artifact bytes (attachment)
  GET  /api/health                              -> {status: "ok"}
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from .errors import ConfigError, MermaidStudioError, ValidationError
from .exporter import RenderExporter
from .registry import generate_diagram

logger = logging.getLogger(__name__)


class GenerateBody(BaseModel):
    """Generate request as sent by the web UI."""
    description: Optional[str] = None
    settings: Optional[dict[str, Any]] = None


class ExportBody(BaseModel):
    """Export request as sent by the web UI."""
    model_config = ConfigDict(populate_by_name=True)

    mermaid_code: Optional[str] = Field(default=None, alias="mermaidCode")
    format: Optional[str] = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(exporter: Optional[RenderExporter] = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        exporter: RenderExporter shared by all export requests (its admission
            gate bounds concurrent browsers). Built from the environment
            when omitted.
    """
    app = FastAPI(
        title="Mermaid Studio API",
        description="Natural-language to Mermaid diagram generation and export",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.exporter = exporter or RenderExporter()

    @app.post("/api/generate")
    async def generate(body: GenerateBody):
        if not body.description or not body.description.strip():
            return _error(400, "Description is required")
        if not body.settings or not body.settings.get("provider"):
            return _error(400, "Provider settings are required")

        try:
            result = await generate_diagram(body.description, body.settings)
        except (ValidationError, ConfigError) as e:
            logger.warning("Generate rejected: %s", e)
            return _error(400, str(e))
        except MermaidStudioError as e:
            logger.error("Generate error: %s", e)
            return _error(500, str(e) or "Failed to generate diagram")

        return {"mermaidCode": result.mermaid_code}

    @app.post("/api/export")
    async def export(body: ExportBody, request: Request):
        exporter: RenderExporter = request.app.state.exporter
        try:
            artifact = await exporter.export(body.mermaid_code, body.format)
        except ValidationError as e:
            return _error(400, str(e))
        except MermaidStudioError as e:
            logger.error("Export error: %s", e)
            return _error(500, str(e) or "Failed to export diagram")

        return Response(
            content=artifact.content,
            media_type=artifact.content_type,
            headers={"Content-Disposition": f"attachment; filename={artifact.filename}"},
        )

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    return app
