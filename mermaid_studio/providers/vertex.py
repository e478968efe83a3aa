"""Google Vertex AI backend: indexed candidates array."""

import logging
from typing import Any, Optional

from google import genai
from google.genai import types

from ..config import VertexConfig, get_request_timeout
from ..errors import BackendError
from ..extractor import normalize
from ..prompts import MAX_TOKENS, TEMPERATURE, TOP_P, build_prompt

logger = logging.getLogger(__name__)


def _candidate_text(response: Any) -> str:
    """Join the text parts of the first candidate."""
    candidates = response.candidates or []
    if not candidates:
        raise ValueError("response contained no candidates")
    parts = candidates[0].content.parts or []
    return "".join(part.text for part in parts if getattr(part, "text", None))


class VertexProvider:
    """Generates markup with a Gemini model on Vertex AI.

    Authentication uses application default credentials for ``project_id``.
    """

    name = "vertex"

    def __init__(
        self,
        config: VertexConfig,
        timeout: Optional[float] = None,
        client: Optional[Any] = None,
    ):
        self.config = config
        self.timeout = timeout if timeout is not None else get_request_timeout()
        self._client = client

    def _create_client(self) -> genai.Client:
        return genai.Client(
            vertexai=True,
            project=self.config.project_id,
            location=self.config.location,
            http_options=types.HttpOptions(timeout=int(self.timeout * 1000)),
        )

    async def generate_diagram(self, description: str) -> str:
        prompt = build_prompt(description)
        logger.debug(
            "Vertex AI request: model=%s project=%s location=%s",
            self.config.model, self.config.project_id, self.config.location,
        )

        try:
            client = self._client if self._client is not None else self._create_client()
            response = await client.aio.models.generate_content(
                model=self.config.model,
                contents=prompt.user,
                config=types.GenerateContentConfig(
                    system_instruction=prompt.system,
                    temperature=TEMPERATURE,
                    top_p=TOP_P,
                    max_output_tokens=MAX_TOKENS,
                ),
            )
            raw = _candidate_text(response)
        except Exception as e:
            logger.error("Vertex AI error: %s", e)
            raise BackendError(f"Vertex AI generation failed: {e}", provider=self.name) from e

        return normalize(raw)
