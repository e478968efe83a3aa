"""mermaid-studio - natural-language to Mermaid diagram generation and export."""

from .errors import (
    MermaidStudioError,
    ValidationError,
    ConfigError,
    BackendError,
    RenderError,
    RenderTimeoutError,
)

from .config import (
    ProviderName,
    OllamaConfig,
    LMStudioConfig,
    AzureConfig,
    BedrockConfig,
    VertexConfig,
    parse_settings,
    settings_from_env,
    print_config,
)

from .models import (
    ExportFormat,
    DiagramPrompt,
    GenerationRequest,
    GenerationResult,
    ExportRequest,
    ExportArtifact,
)

from .extractor import (
    DIAGRAM_TYPES,
    normalize,
    strip_fences,
    detect_diagram_type,
)

from .providers import (
    DiagramProvider,
    OllamaProvider,
    LMStudioProvider,
    AzureProvider,
    BedrockProvider,
    VertexProvider,
)

from .registry import (
    PROVIDERS,
    get_provider,
    generate_diagram,
)

from .exporter import (
    RenderExporter,
    build_render_document,
    launch_sandbox,
    export_diagram,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Errors
    "MermaidStudioError",
    "ValidationError",
    "ConfigError",
    "BackendError",
    "RenderError",
    "RenderTimeoutError",
    # Config
    "ProviderName",
    "OllamaConfig",
    "LMStudioConfig",
    "AzureConfig",
    "BedrockConfig",
    "VertexConfig",
    "parse_settings",
    "settings_from_env",
    "print_config",
    # Models
    "ExportFormat",
    "DiagramPrompt",
    "GenerationRequest",
    "GenerationResult",
    "ExportRequest",
    "ExportArtifact",
    # Extractor
    "DIAGRAM_TYPES",
    "normalize",
    "strip_fences",
    "detect_diagram_type",
    # Providers
    "DiagramProvider",
    "OllamaProvider",
    "LMStudioProvider",
    "AzureProvider",
    "BedrockProvider",
    "VertexProvider",
    # Registry
    "PROVIDERS",
    "get_provider",
    "generate_diagram",
    # Exporter
    "RenderExporter",
    "build_render_document",
    "launch_sandbox",
    "export_diagram",
]
