"""Azure OpenAI backend: chat-completion array."""

import logging
from typing import Any, Optional

from openai import AsyncAzureOpenAI

from ..config import AzureConfig, get_request_timeout
from ..errors import BackendError
from ..extractor import normalize
from ..prompts import MAX_TOKENS, TEMPERATURE, build_prompt

logger = logging.getLogger(__name__)


class AzureProvider:
    """Generates markup with a chat-completions deployment on Azure OpenAI.

    The deployment name is passed as the model; the endpoint, key and
    deployment are required and validated when the settings are parsed.
    """

    name = "azure"

    def __init__(
        self,
        config: AzureConfig,
        timeout: Optional[float] = None,
        client: Optional[Any] = None,
    ):
        self.config = config
        self.timeout = timeout if timeout is not None else get_request_timeout()
        self._client = client

    def _create_client(self) -> AsyncAzureOpenAI:
        return AsyncAzureOpenAI(
            azure_endpoint=self.config.endpoint,
            api_key=self.config.api_key,
            api_version=self.config.api_version,
            timeout=self.timeout,
            max_retries=0,
        )

    async def generate_diagram(self, description: str) -> str:
        prompt = build_prompt(description)
        logger.debug("Azure OpenAI request: deployment=%s", self.config.deployment)

        owned = self._client is None
        try:
            client = self._create_client() if owned else self._client
            try:
                response = await client.chat.completions.create(
                    model=self.config.deployment,
                    messages=[
                        {"role": "system", "content": prompt.system},
                        {"role": "user", "content": prompt.user},
                    ],
                    temperature=TEMPERATURE,
                    max_tokens=MAX_TOKENS,
                )
            finally:
                if owned:
                    await client.close()
            raw = response.choices[0].message.content
        except Exception as e:
            logger.error("Azure OpenAI error: %s", e)
            raise BackendError(f"Azure OpenAI generation failed: {e}", provider=self.name) from e

        return normalize(raw)
