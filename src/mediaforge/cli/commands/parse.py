#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/cli/commands/parse.py
"""Show how a transformation URL is parsed and resolved."""

from __future__ import annotations

import argparse
import json
import sys

from mediaforge.cli.builder import EXIT_SUCCESS, EXIT_VALIDATION_ERROR
from mediaforge.cli.commands.shared import parse_command_args
from mediaforge.exceptions import MalformedUrlError
from mediaforge.operations import image_registry, video_registry
from mediaforge.parser import parse_transformation_url


def _create_parse_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mediaforge parse",
        description="Parse a transformation URL and print its public id and chain.",
    )
    parser.add_argument("url", help="Transformation URL path")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of text")
    return parser


def handle_parse_command(args: list[str] | None = None) -> int:
    """Handle the parse command.

    Each directive is shown with the operation it resolves to in the URL's
    domain, or ``unsupported`` when the domain has no such operation.
    """
    parsed = parse_command_args(_create_parse_parser(), args or [])
    if isinstance(parsed, int):
        return parsed

    try:
        result = parse_transformation_url(parsed.url)
    except MalformedUrlError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    registry = {"image": image_registry, "video": video_registry}.get(result.domain or "")
    steps = []
    for spec in result.transformations:
        resolved = registry.resolve(spec) if registry is not None else None
        step = spec.to_dict()
        step["operation"] = resolved.metadata.name if resolved is not None else None
        steps.append(step)

    if parsed.json:
        print(
            json.dumps(
                {"domain": result.domain, "public_id": result.public_id, "transformations": steps},
                indent=2,
            )
        )
        return EXIT_SUCCESS

    print(f"Domain:    {result.domain or '(none)'}")
    print(f"Public id: {result.public_id}")
    print(f"Transformations ({len(steps)}):")
    for index, step in enumerate(steps, start=1):
        params = ", ".join(f"{key}={value!r}" for key, value in step["params"].items())
        operation = step["operation"] or "unsupported"
        print(f"  {index}. {step['type']:20} -> {operation:12} {params}".rstrip())

    return EXIT_SUCCESS
