"""Ollama backend: single completion field."""

import logging
from typing import Optional

import httpx

from ..config import OllamaConfig, get_request_timeout
from ..errors import BackendError
from ..extractor import normalize
from ..prompts import TEMPERATURE, TOP_P, build_prompt

logger = logging.getLogger(__name__)


class OllamaProvider:
    """Generates markup through Ollama's ``/api/generate`` endpoint."""

    name = "ollama"

    def __init__(
        self,
        config: OllamaConfig,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config
        self.base_url = config.url.rstrip("/")
        self.timeout = timeout if timeout is not None else get_request_timeout()
        self._http_client = http_client

    def _build_payload(self, description: str) -> dict:
        return {
            "model": self.config.model,
            "prompt": build_prompt(description).as_completion(),
            "stream": False,
            "options": {"temperature": TEMPERATURE, "top_p": TOP_P},
        }

    async def _post(self, client: httpx.AsyncClient, payload: dict) -> dict:
        response = await client.post(f"{self.base_url}/api/generate", json=payload)
        response.raise_for_status()
        return response.json()

    async def generate_diagram(self, description: str) -> str:
        payload = self._build_payload(description)
        logger.debug("Ollama request: model=%s url=%s", self.config.model, self.base_url)

        try:
            if self._http_client is not None:
                data = await self._post(self._http_client, payload)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    data = await self._post(client, payload)
            raw = data["response"]
        except Exception as e:
            logger.error("Ollama error: %s", e)
            raise BackendError(f"Ollama generation failed: {e}", provider=self.name) from e

        return normalize(raw)
