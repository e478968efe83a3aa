"""Provider registry: settings -> provider instance -> markup."""

import logging
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from .config import ProviderName, describe_model, parse_settings
from .errors import ValidationError
from .extractor import detect_diagram_type
from .models import GenerationRequest, GenerationResult
from .providers import (
    AzureProvider,
    BedrockProvider,
    DiagramProvider,
    LMStudioProvider,
    OllamaProvider,
    VertexProvider,
)

logger = logging.getLogger(__name__)


PROVIDERS = {
    ProviderName.OLLAMA: OllamaProvider,
    ProviderName.LMSTUDIO: LMStudioProvider,
    ProviderName.AZURE: AzureProvider,
    ProviderName.BEDROCK: BedrockProvider,
    ProviderName.VERTEX: VertexProvider,
}


def _validate_provider_mappings():
    """Validate every ProviderName has an implementation. Fails at module load."""
    missing = [p.value for p in ProviderName if p not in PROVIDERS]
    if missing:
        raise ValueError(
            f"PROVIDERS missing implementations for: {missing}. "
            "Add entries to PROVIDERS in registry.py"
        )


# Validate at module load time
_validate_provider_mappings()


def get_provider(settings: Any, timeout: Optional[float] = None) -> DiagramProvider:
    """Instantiate the provider selected by ``settings``.

    Raises:
        ConfigError: the settings are incomplete or name an unsupported
            provider or model. Nothing has touched the network yet.
    """
    config = parse_settings(settings)
    provider_cls = PROVIDERS[ProviderName(config.provider)]
    return provider_cls(config, timeout=timeout)


async def generate_diagram(
    description: str,
    settings: Any,
    timeout: Optional[float] = None,
) -> GenerationResult:
    """Generate Mermaid markup for ``description`` with the configured provider.

    Raises:
        ValidationError: the description is empty.
        ConfigError: the settings are invalid (raised before any request).
        BackendError: the backend call failed.
    """
    try:
        request = GenerationRequest(description=description or "")
    except PydanticValidationError:
        raise ValidationError("Description is required") from None

    provider = get_provider(settings, timeout=timeout)
    logger.info("Generating diagram with %s (%s)", provider.name, describe_model(provider.config))
    markup = await provider.generate_diagram(request.description)

    first_line = markup.split("\n", 1)[0]
    return GenerationResult(
        mermaid_code=markup,
        provider=provider.name,
        diagram_type=detect_diagram_type(first_line),
    )
