#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/cli/commands/operations.py
"""Operation listing command for the mediaforge CLI.

Lists the tags registered for each media domain, with their descriptions
and parameters. Supports both plain text and rich terminal output.
"""

from __future__ import annotations

import argparse
import sys

from mediaforge.cli.builder import EXIT_SUCCESS, EXIT_VALIDATION_ERROR
from mediaforge.cli.commands.shared import parse_command_args
from mediaforge.cli.output import should_use_rich_output
from mediaforge.constants import SUPPORTED_DOMAINS
from mediaforge.operations import OperationRegistry, get_registry


def _create_list_operations_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mediaforge list-operations", description="Show available image and video operations."
    )
    parser.add_argument("domain", nargs="?", choices=SUPPORTED_DOMAINS, help="Only list this domain")
    parser.add_argument("operation", nargs="?", help="Show details for a specific operation")
    parser.add_argument("--tag", action="append", dest="tags", help="Only list operations with this tag")
    parser.add_argument("--rich", action="store_true", help="Use rich terminal output")
    parser.add_argument("--force-rich", action="store_true", help="Use rich output even when not writing to a TTY")
    return parser


def _print_details_plain(registry: OperationRegistry, name: str) -> None:
    metadata = registry.get_metadata(name)
    print(f"\n{metadata.name} ({registry.domain})")
    print("=" * 60)
    print(f"Description: {metadata.description}")
    if metadata.tags:
        print(f"Tags: {', '.join(metadata.tags)}")
    if metadata.author:
        print(f"Author: {metadata.author}")

    if metadata.parameters:
        print("\nParameters:")
        for param_name, spec in metadata.parameters.items():
            default_str = f"(default: {spec.default})" if spec.default is not None else ""
            required_str = "(required)" if spec.required else ""
            print(f"  {param_name} ({spec.type_name}) {required_str}{default_str}".rstrip())
            if spec.help:
                print(f"    {spec.help}")


def _print_summary_plain(registry: OperationRegistry, names: list[str]) -> None:
    print(f"\nAvailable {registry.domain} operations")
    print("=" * 60)
    for name in names:
        metadata = registry.get_metadata(name)
        tags_str = f" [{', '.join(metadata.tags)}]" if metadata.tags else ""
        print(f"  {metadata.name:22} {metadata.description}{tags_str}")
    print(f"\nTotal: {len(names)} operations")


def _print_rich(registry: OperationRegistry, names: list[str], specific: str | None) -> None:
    from rich.console import Console
    from rich.panel import Panel
    from rich.table import Table

    console = Console()

    if specific:
        metadata = registry.get_metadata(specific)
        content = [
            f"[bold]Name:[/bold] {metadata.name}",
            f"[bold]Domain:[/bold] {registry.domain}",
            f"[bold]Description:[/bold] {metadata.description}",
        ]
        if metadata.tags:
            content.append(f"[bold]Tags:[/bold] {', '.join(metadata.tags)}")
        console.print(Panel("\n".join(content), title=f"Operation: {metadata.name}"))

        if metadata.parameters:
            table = Table(title="Parameters")
            table.add_column("Name", style="cyan")
            table.add_column("Type", style="yellow")
            table.add_column("Default", style="green")
            table.add_column("Required", style="magenta")
            table.add_column("Description", style="white")
            for param_name, spec in metadata.parameters.items():
                table.add_row(
                    param_name,
                    spec.type_name,
                    str(spec.default) if spec.default is not None else "",
                    "yes" if spec.required else "",
                    spec.help or "",
                )
            console.print(table)
        return

    table = Table(title=f"Available {registry.domain} operations ({len(names)})")
    table.add_column("Tag", style="cyan")
    table.add_column("Description", style="white")
    table.add_column("Tags", style="yellow")
    for name in names:
        metadata = registry.get_metadata(name)
        table.add_row(metadata.name, metadata.description, ", ".join(metadata.tags))
    console.print(table)


def handle_list_operations_command(args: list[str] | None = None) -> int:
    """Handle the list-operations command.

    Returns
    -------
    int
        Exit code (0 for success)

    """
    parsed = parse_command_args(_create_list_operations_parser(), args or [])
    if isinstance(parsed, int):
        return parsed

    if parsed.operation and not parsed.domain:
        print("Error: give a domain (image or video) with an operation name", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    domains = [parsed.domain] if parsed.domain else list(SUPPORTED_DOMAINS)
    use_rich = should_use_rich_output(parsed)

    for domain in domains:
        registry = get_registry(domain)
        names = registry.list_operations(tags=parsed.tags)

        if parsed.operation:
            if not registry.has_operation(parsed.operation):
                print(f"Error: {domain} operation '{parsed.operation}' not found", file=sys.stderr)
                print(f"Available: {', '.join(names)}", file=sys.stderr)
                return EXIT_VALIDATION_ERROR
            names = [parsed.operation]

        if use_rich:
            _print_rich(registry, names, parsed.operation)
        elif parsed.operation:
            _print_details_plain(registry, parsed.operation)
        else:
            _print_summary_plain(registry, names)

    return EXIT_SUCCESS
