"""Provider settings and runtime configuration."""

import os
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import ConfigError


class ProviderName(str, Enum):
    """Supported generation backends."""
    OLLAMA = "ollama"
    LMSTUDIO = "lmstudio"
    AZURE = "azure"
    BEDROCK = "bedrock"
    VERTEX = "vertex"

    @classmethod
    def from_env(cls) -> "ProviderName":
        """Detect provider from environment."""
        explicit = os.getenv("MERMAID_PROVIDER", "").lower()
        try:
            return cls(explicit)
        except ValueError:
            return cls.OLLAMA


# Runtime defaults
DEFAULT_REQUEST_TIMEOUT = 120.0
DEFAULT_MAX_RENDERS = 4
DEFAULT_RENDER_TIMEOUT_MS = 10_000
DEFAULT_MERMAID_SCRIPT_URL = "https://cdn.jsdelivr.net/npm/mermaid@10/dist/mermaid.min.js"


class _ProviderConfig(BaseModel):
    """Common behaviour for the per-provider settings models.

    Accepts camelCase keys as stored by the settings form as well as
    snake_case names. Blank strings count as absent so defaults apply.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
        protected_namespaces=(),
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_blank_values(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                k: v for k, v in data.items()
                if not (isinstance(v, str) and not v.strip())
            }
        return data


class OllamaConfig(_ProviderConfig):
    provider: Literal["ollama"] = "ollama"
    url: str = "http://localhost:11434"
    model: str = "llama2"


class LMStudioConfig(_ProviderConfig):
    provider: Literal["lmstudio"] = "lmstudio"
    url: str = "http://localhost:1234"
    model: str = "local-model"


class AzureConfig(_ProviderConfig):
    provider: Literal["azure"] = "azure"
    endpoint: str
    api_key: str
    deployment: str
    api_version: str = "2024-02-01"


class BedrockConfig(_ProviderConfig):
    provider: Literal["bedrock"] = "bedrock"
    region: str = "us-east-1"
    model_id: str = "anthropic.claude-v2"
    access_key: Optional[str] = None
    secret_key: Optional[str] = None

    @property
    def has_static_credentials(self) -> bool:
        return bool(self.access_key and self.secret_key)


class VertexConfig(_ProviderConfig):
    provider: Literal["vertex"] = "vertex"
    project_id: str
    location: str = "us-central1"
    model: str = "gemini-pro"


ProviderConfig = Annotated[
    Union[OllamaConfig, LMStudioConfig, AzureConfig, BedrockConfig, VertexConfig],
    Field(discriminator="provider"),
]

_provider_config_adapter: TypeAdapter = TypeAdapter(ProviderConfig)

# Fields surfaced in error messages, keyed by their settings-form name
REQUIRED_FIELDS = {
    ProviderName.AZURE: ("endpoint", "apiKey", "deployment"),
    ProviderName.VERTEX: ("projectId",),
}


def parse_settings(settings: Any) -> Any:
    """Resolve a settings value into exactly one provider config.

    ``settings`` is either an already-built config model or the settings
    store shape ``{"provider": "<tag>", "<tag>": {...}}``.

    Raises:
        ConfigError: unknown or missing provider tag, or invalid/missing
            fields for the active tag.
    """
    if isinstance(settings, _ProviderConfig):
        return settings
    if not isinstance(settings, dict):
        raise ConfigError("Provider settings must be an object")

    tag = settings.get("provider")
    if not tag:
        raise ConfigError("Provider settings are required")
    try:
        name = ProviderName(str(tag).lower())
    except ValueError:
        raise ConfigError(f"Unknown provider: {tag}") from None

    section = settings.get(name.value) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Settings for '{name.value}' must be an object")

    try:
        return _provider_config_adapter.validate_python({**section, "provider": name.value})
    except PydanticValidationError as e:
        missing = [
            ".".join(str(p) for p in err["loc"][1:]) or str(err["loc"][0])
            for err in e.errors()
            if err["type"] == "missing"
        ]
        if missing:
            raise ConfigError(
                f"{name.value} requires {', '.join(REQUIRED_FIELDS.get(name, ()))}; "
                f"missing: {', '.join(missing)}"
            ) from None
        raise ConfigError(f"Invalid {name.value} settings: {e}") from None


def settings_from_env(provider: Optional[ProviderName] = None) -> dict:
    """Build a settings-store shaped dict from environment variables."""
    if provider is None:
        provider = ProviderName.from_env()

    return {
        "provider": provider.value,
        "ollama": {
            "url": os.getenv("OLLAMA_BASE_URL", ""),
            "model": os.getenv("OLLAMA_MODEL", ""),
        },
        "lmstudio": {
            "url": os.getenv("LMSTUDIO_BASE_URL", ""),
            "model": os.getenv("LMSTUDIO_MODEL", ""),
        },
        "azure": {
            "endpoint": os.getenv("AZURE_OPENAI_ENDPOINT", ""),
            "apiKey": os.getenv("AZURE_OPENAI_API_KEY", ""),
            "deployment": os.getenv("AZURE_OPENAI_DEPLOYMENT", ""),
            "apiVersion": os.getenv("AZURE_OPENAI_API_VERSION", ""),
        },
        "bedrock": {
            "region": os.getenv("AWS_REGION", ""),
            "accessKey": os.getenv("AWS_ACCESS_KEY_ID", ""),
            "secretKey": os.getenv("AWS_SECRET_ACCESS_KEY", ""),
            "modelId": os.getenv("BEDROCK_MODEL_ID", ""),
        },
        "vertex": {
            "projectId": os.getenv("VERTEX_PROJECT_ID", os.getenv("GOOGLE_CLOUD_PROJECT", "")),
            "location": os.getenv("VERTEX_LOCATION", ""),
            "model": os.getenv("VERTEX_MODEL", ""),
        },
    }


def _env_number(name: str, default, cast):
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def get_request_timeout() -> float:
    """Timeout in seconds for one outbound provider call."""
    return _env_number("MERMAID_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT, float)


def get_max_concurrent_renders() -> int:
    """Upper bound on rendering sandboxes alive at once."""
    return _env_number("MERMAID_MAX_RENDERS", DEFAULT_MAX_RENDERS, int)


def get_render_timeout() -> int:
    """DOM readiness bound for one export, in milliseconds."""
    return _env_number("MERMAID_RENDER_TIMEOUT", DEFAULT_RENDER_TIMEOUT_MS, int)


def get_mermaid_script_url() -> str:
    """URL of the client-side rendering library loaded by the sandbox."""
    return os.getenv("MERMAID_SCRIPT_URL", "") or DEFAULT_MERMAID_SCRIPT_URL


def describe_model(config) -> str:
    """Short human-readable model identifier for a provider config."""
    if isinstance(config, AzureConfig):
        return config.deployment
    if isinstance(config, BedrockConfig):
        return config.model_id
    return config.model


def get_current_config() -> dict:
    """Get current configuration as a dictionary."""
    settings = settings_from_env()
    result = {
        "provider": settings["provider"],
        "request_timeout": get_request_timeout(),
        "max_renders": get_max_concurrent_renders(),
        "render_timeout_ms": get_render_timeout(),
        "mermaid_script_url": get_mermaid_script_url(),
    }

    try:
        config = parse_settings(settings)
    except ConfigError as e:
        result["error"] = str(e)
        return result

    result["model"] = describe_model(config)
    if isinstance(config, (OllamaConfig, LMStudioConfig)):
        result["url"] = config.url
    elif isinstance(config, AzureConfig):
        result["endpoint"] = config.endpoint
        result["api_key_set"] = bool(config.api_key)
    elif isinstance(config, BedrockConfig):
        result["region"] = config.region
        result["static_credentials"] = config.has_static_credentials
    elif isinstance(config, VertexConfig):
        result["project_id"] = config.project_id
        result["location"] = config.location
    return result


def print_config():
    """Print current configuration."""
    config = get_current_config()
    print(f"Provider: {config['provider']}")
    if "error" in config:
        print(f"Settings: INVALID ({config['error']})")
    else:
        print(f"Model: {config['model']}")
        if "url" in config:
            print(f"URL: {config['url']}")
        if "endpoint" in config:
            print(f"Endpoint: {config['endpoint']}")
            print(f"API Key: {'Set' if config['api_key_set'] else 'NOT SET'}")
        if "region" in config:
            print(f"Region: {config['region']}")
            print(f"AWS Keys: {'Set' if config['static_credentials'] else 'default chain'}")
        if "project_id" in config:
            print(f"Project: {config['project_id']} ({config['location']})")
    print(f"Request timeout: {config['request_timeout']}s")
    print(f"Max concurrent renders: {config['max_renders']}")
    print(f"Render timeout: {config['render_timeout_ms']}ms")
