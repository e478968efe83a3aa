"""AWS Bedrock backend.

Bedrock hosts several model families behind one ``invoke_model`` call, each
with its own request and response body. The family is chosen from the
model identifier prefix; unknown families are rejected before any call.
"""

import asyncio
import json
import logging
from typing import Any, Optional

import boto3
from botocore.config import Config

from ..config import BedrockConfig, get_request_timeout
from ..errors import BackendError, ConfigError
from ..extractor import normalize
from ..prompts import MAX_TOKENS, TEMPERATURE, TOP_P, build_prompt

logger = logging.getLogger(__name__)

ANTHROPIC_PREFIX = "anthropic.claude"
TITAN_PREFIX = "amazon.titan"


def _anthropic_body(prompt: str) -> dict:
    return {
        "prompt": f"\n\nHuman: {prompt}\n\nAssistant:",
        "max_tokens_to_sample": MAX_TOKENS,
        "temperature": TEMPERATURE,
        "top_p": TOP_P,
    }


def _anthropic_text(body: dict) -> str:
    return body["completion"]


def _titan_body(prompt: str) -> dict:
    return {
        "inputText": prompt,
        "textGenerationConfig": {
            "maxTokenCount": MAX_TOKENS,
            "temperature": TEMPERATURE,
            "topP": TOP_P,
        },
    }


def _titan_text(body: dict) -> str:
    return body["results"][0]["outputText"]


# prefix -> (request body builder, response text extractor)
MODEL_SCHEMAS = {
    ANTHROPIC_PREFIX: (_anthropic_body, _anthropic_text),
    TITAN_PREFIX: (_titan_body, _titan_text),
}


def resolve_schema(model_id: str):
    """Return the (builder, extractor) pair for ``model_id``.

    Raises:
        ConfigError: no supported family matches the identifier.
    """
    for prefix, schema in MODEL_SCHEMAS.items():
        if model_id.startswith(prefix):
            return schema
    supported = ", ".join(f"{p}*" for p in MODEL_SCHEMAS)
    raise ConfigError(f"Unsupported Bedrock model: {model_id} (supported: {supported})")


class BedrockProvider:
    """Generates markup through the Bedrock runtime ``invoke_model`` API."""

    name = "bedrock"

    def __init__(
        self,
        config: BedrockConfig,
        timeout: Optional[float] = None,
        client: Optional[Any] = None,
    ):
        self.config = config
        self.timeout = timeout if timeout is not None else get_request_timeout()
        self._build_body, self._extract_text = resolve_schema(config.model_id)
        self._client = client

    def _create_client(self):
        kwargs = {
            "region_name": self.config.region,
            "config": Config(
                connect_timeout=self.timeout,
                read_timeout=self.timeout,
                retries={"total_max_attempts": 1},
            ),
        }
        if self.config.has_static_credentials:
            kwargs["aws_access_key_id"] = self.config.access_key
            kwargs["aws_secret_access_key"] = self.config.secret_key
        return boto3.client("bedrock-runtime", **kwargs)

    def _invoke(self, body: dict) -> dict:
        client = self._client if self._client is not None else self._create_client()
        response = client.invoke_model(
            modelId=self.config.model_id,
            contentType="application/json",
            accept="application/json",
            body=json.dumps(body),
        )
        return json.loads(response["body"].read())

    async def generate_diagram(self, description: str) -> str:
        body = self._build_body(build_prompt(description).as_completion())
        logger.debug("Bedrock request: model=%s region=%s", self.config.model_id, self.config.region)

        try:
            # boto3 is blocking
            response_body = await asyncio.to_thread(self._invoke, body)
            raw = self._extract_text(response_body)
        except Exception as e:
            logger.error("Bedrock error: %s", e)
            raise BackendError(f"Bedrock generation failed: {e}", provider=self.name) from e

        return normalize(raw)
