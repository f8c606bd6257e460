"""CLI entrypoint for promptgen."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config.settings import get_settings
from .core.exceptions import PromptGenException
from .core.render_models import RandomizeOptions, RenderingContext, RenderOptions, RenderRequest
from .rendering.engine import PromptRenderer
from .storage.resolver import load_package
from .utils.logging import configure_logging
from .validation.content_validator import validate_content


def _read_json_arg(value: str) -> Any:
    """Parse inline JSON, or JSON from a file when prefixed with ``@``."""
    if value.startswith("@"):
        return json.loads(Path(value[1:]).read_text(encoding="utf-8"))
    return json.loads(value)


def cmd_render(args: argparse.Namespace) -> int:
    variables: Dict[str, Any] = _read_json_arg(args.vars) if args.vars else {}
    if not isinstance(variables, dict):
        print("--vars must be a JSON object", file=sys.stderr)
        return 2

    resolver = load_package(args.package)
    randomize = RandomizeOptions(seed=args.seed) if args.seed is not None else None
    request = RenderRequest(
        template_id=args.entry,
        context=RenderingContext(variables=variables),
        options=RenderOptions(count=args.count, randomize=randomize),
    )
    result = PromptRenderer(resolver, get_settings()).render(request)

    if args.json:
        print(result.model_dump_json(indent=2))
    else:
        for i, output in enumerate(result.outputs):
            if len(result.outputs) > 1:
                print(f"--- output {i + 1} ---")
            print(output.text)
            for warning in output.warnings or []:
                print(f"warning: {warning}", file=sys.stderr)
        for error in result.errors or []:
            location = f" ({error.location})" if error.location else ""
            print(f"error: [{error.code}] {error.message}{location}", file=sys.stderr)

    return 0 if result.success else 1


def cmd_preview_separator(args: argparse.Namespace) -> int:
    rules = args.set if args.set else _read_json_arg("@" + args.rules)
    renderer = PromptRenderer(settings=get_settings())
    print(renderer.preview_separator(rules, args.items))
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    content = json.loads(Path(args.file).read_text(encoding="utf-8"))
    # Accept a bare content tree or a section wrapping one
    if isinstance(content, dict) and "type" not in content and "content" in content:
        content = content["content"]

    errors = validate_content(content)
    for error in errors:
        print(f"{error.path}: [{error.code}] {error.message}")
    if not errors:
        print("OK")
    return 1 if errors else 0


def cmd_serve(args: argparse.Namespace) -> int:
    from .api.app import create_app

    settings = get_settings()
    resolver = load_package(args.package)
    app = create_app(resolver, settings)
    app.run(host=args.host or settings.api_host, port=args.port or settings.api_port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="promptgen", description="Prompt template renderer")
    subparsers = parser.add_subparsers(dest="command", required=True)

    render = subparsers.add_parser("render", help="Render an entry point from a package file")
    render.add_argument("--package", required=True, help="Package export JSON file")
    render.add_argument("--entry", required=True, help="Entry point id or name")
    render.add_argument("--vars", help="Variables as JSON, or @FILE")
    render.add_argument("--count", type=int, default=1, help="Number of outputs")
    render.add_argument("--seed", type=int, help="Seed for reproducible output")
    render.add_argument("--json", action="store_true", help="Print the full result as JSON")
    render.set_defaults(func=cmd_render)

    preview = subparsers.add_parser("preview-separator", help="Join sample items")
    source = preview.add_mutually_exclusive_group(required=True)
    source.add_argument("--set", help="Built-in separator set name")
    source.add_argument("--rules", help="Separator rules JSON file")
    preview.add_argument("items", nargs="+")
    preview.set_defaults(func=cmd_preview_separator)

    validate = subparsers.add_parser("validate", help="Validate a content tree JSON file")
    validate.add_argument("file")
    validate.set_defaults(func=cmd_validate)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--package", required=True, help="Package export JSON file")
    serve.add_argument("--host")
    serve.add_argument("--port", type=int)
    serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.json_logs)

    try:
        return args.func(args)
    except (PromptGenException, OSError, json.JSONDecodeError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
