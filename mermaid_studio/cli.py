"""Command-line interface."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .config import ProviderName, print_config, settings_from_env
from .errors import ConfigError, MermaidStudioError
from .exporter import RenderExporter
from .registry import generate_diagram

# --model overrides the field each provider uses for its model identifier
MODEL_FIELDS = {
    ProviderName.OLLAMA: "model",
    ProviderName.LMSTUDIO: "model",
    ProviderName.AZURE: "deployment",
    ProviderName.BEDROCK: "modelId",
    ProviderName.VERTEX: "model",
}


def load_settings(args) -> dict:
    """Settings from a JSON file (settings-store shape) or the environment."""
    if args.settings:
        settings = json.loads(Path(args.settings).read_text(encoding="utf-8"))
        if not isinstance(settings, dict):
            raise ConfigError(f"Settings file must contain a JSON object: {args.settings}")
    else:
        provider = ProviderName(args.provider) if args.provider else None
        settings = settings_from_env(provider)

    if args.provider:
        settings["provider"] = args.provider
    if args.model:
        try:
            name = ProviderName(settings.get("provider"))
        except ValueError:
            raise ConfigError(f"Unknown provider: {settings.get('provider')}") from None
        settings.setdefault(name.value, {})[MODEL_FIELDS[name]] = args.model
    return settings


async def run_generate(args) -> int:
    settings = load_settings(args)
    result = await generate_diagram(args.description, settings)

    if args.json:
        print(json.dumps(result.model_dump(by_alias=True), indent=2))
    elif args.output:
        Path(args.output).write_text(result.mermaid_code + "\n", encoding="utf-8")
        print(f"Diagram ({result.diagram_type or 'unknown type'}) written to {args.output}")
    else:
        print(result.mermaid_code)
    return 0


async def run_export(args) -> int:
    if args.input == "-":
        markup = sys.stdin.read()
    else:
        markup = Path(args.input).read_text(encoding="utf-8")

    artifact = await RenderExporter().export(markup, args.format)

    output = Path(args.output or artifact.filename)
    output.write_bytes(artifact.content)
    print(f"Exported {artifact.content_type} ({len(artifact.content)} bytes) to {output}")
    return 0


def run_serve(args) -> int:
    import uvicorn

    from .api import create_app

    print("=" * 60)
    print("mermaid-studio - API server")
    print("=" * 60)
    print_config()
    print(f"\nServing on http://{args.host}:{args.port}\n")
    uvicorn.run(create_app(), host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mermaid-studio",
        description="Generate Mermaid diagrams from descriptions and export them",
    )
    parser.add_argument(
        "--config", "-c",
        action="store_true",
        help="Show config and exit"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command")

    gen = subparsers.add_parser("generate", help="Generate Mermaid markup from a description")
    gen.add_argument("description", help="Natural-language description of the diagram")
    gen.add_argument(
        "--provider", "-p",
        choices=[p.value for p in ProviderName],
        help="Provider to use (default: MERMAID_PROVIDER or ollama)"
    )
    gen.add_argument(
        "--settings",
        type=str,
        metavar="SETTINGS.json",
        help="JSON settings file: {\"provider\": ..., \"<provider>\": {...}}"
    )
    gen.add_argument("--model", "-m", help="Override the provider's model identifier")
    gen.add_argument("--output", "-o", help="Write markup to this file")
    gen.add_argument(
        "--json",
        action="store_true",
        help="Output result as JSON (for scripting)"
    )

    exp = subparsers.add_parser("export", help="Render Mermaid markup to an image")
    exp.add_argument("input", help="Markup file, or - for stdin")
    exp.add_argument(
        "--format", "-f",
        choices=["svg", "png", "jpeg"],
        default="svg",
        help="Artifact format"
    )
    exp.add_argument("--output", "-o", help="Output path (default: diagram.<format>)")

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=3000)

    return parser


def main(argv=None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.config:
        print_config()
        return

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "generate":
            code = asyncio.run(run_generate(args))
        elif args.command == "export":
            code = asyncio.run(run_export(args))
        else:
            code = run_serve(args)
    except (MermaidStudioError, OSError, json.JSONDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    sys.exit(code)


if __name__ == "__main__":
    main()
