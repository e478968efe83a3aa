"""LM Studio backend: OpenAI-compatible chat-completion array."""

import logging
from typing import Optional

import httpx

from ..config import LMStudioConfig, get_request_timeout
from ..errors import BackendError
from ..extractor import normalize
from ..prompts import MAX_TOKENS, TEMPERATURE, build_prompt

logger = logging.getLogger(__name__)


class LMStudioProvider:
    """Generates markup through LM Studio's local chat-completions server."""

    name = "lmstudio"

    def __init__(
        self,
        config: LMStudioConfig,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config
        self.base_url = config.url.rstrip("/")
        self.timeout = timeout if timeout is not None else get_request_timeout()
        self._http_client = http_client

    def _build_payload(self, description: str) -> dict:
        prompt = build_prompt(description)
        return {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": prompt.system},
                {"role": "user", "content": prompt.user},
            ],
            "temperature": TEMPERATURE,
            "max_tokens": MAX_TOKENS,
        }

    async def _post(self, client: httpx.AsyncClient, payload: dict) -> dict:
        response = await client.post(f"{self.base_url}/v1/chat/completions", json=payload)
        response.raise_for_status()
        return response.json()

    async def generate_diagram(self, description: str) -> str:
        payload = self._build_payload(description)
        logger.debug("LM Studio request: model=%s url=%s", self.config.model, self.base_url)

        try:
            if self._http_client is not None:
                data = await self._post(self._http_client, payload)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    data = await self._post(client, payload)
            raw = data["choices"][0]["message"]["content"]
        except Exception as e:
            logger.error("LM Studio error: %s", e)
            raise BackendError(f"LM Studio generation failed: {e}", provider=self.name) from e

        return normalize(raw)
