"""
Terminal client for code migration.

Fetches code from a migration server, runs it in the local sandbox and
renders each step, the captured output and the run history using Rich.
"""

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.style import Style
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from . import configure_logging
from .aggregator import History
from .client import MigrationClient
from .config import AppConfig
from .exceptions import CodeMigrationError
from .types import HistoryRecord

COLORS = {
    "primary": "#7AA2F7",
    "success": "#9ECE6A",
    "warning": "#E0AF68",
    "error": "#F7768E",
    "text": "#A9B1D6",
    "muted": "#565F89",
    "accent": "#7DCFFF",
    "border": "#3B4261",
}

STEP_LABELS = {
    "request": "Request",
    "fetch": "Fetch",
    "execute": "Execute",
    "done": "Done",
}

MAX_OUTPUT_LINES = 40


class MigrationDisplay:
    """Renders migration cycles to a Rich console."""

    def __init__(self, console: Console, show_code: bool = False):
        self.console = console
        self.show_code = show_code

    def step(self, step: str, message: str) -> None:
        line = Text()
        line.append("◆ ", style=Style(color=COLORS["accent"]))
        line.append(f"{STEP_LABELS.get(step, step)}: ", style=Style(color=COLORS["primary"], bold=True))
        line.append(message, style=Style(color=COLORS["text"]))
        self.console.print(line)

    def record(self, record: HistoryRecord, source: str | None = None) -> None:
        if self.show_code and source:
            self.console.print(
                Panel(
                    Syntax(source + "\n" + record.artifact.call_expression, "python", theme="monokai"),
                    title="Migrated code" + (" (cached)" if record.artifact.cached else ""),
                    title_align="left",
                    border_style=COLORS["border"],
                )
            )

        lines = list(record.outcome.output_lines)
        if len(lines) > MAX_OUTPUT_LINES:
            hidden = len(lines) - MAX_OUTPUT_LINES
            lines = lines[: MAX_OUTPUT_LINES // 2] + [f"... {hidden} more lines ..."] + lines[-MAX_OUTPUT_LINES // 2 :]
        color = COLORS["success"] if record.succeeded else COLORS["error"]
        self.console.print(
            Panel(
                Text("\n".join(lines) or "(no output)", style=Style(color=color)),
                title=f"Output of {record.artifact.call_expression}",
                title_align="left",
                border_style=COLORS["border"],
            )
        )

    def history(self, history: History) -> None:
        table = Table(title="History", border_style=COLORS["border"])
        table.add_column("Time", style=COLORS["muted"])
        table.add_column("Server")
        table.add_column("Kind")
        table.add_column("n", justify="right")
        table.add_column("Cached")
        table.add_column("Result", overflow="fold", max_width=30)
        table.add_column("Server ms", justify="right")
        table.add_column("Client ms", justify="right")
        for record in history:
            result = record.result or ""
            if len(result) > 30:
                result = result[:27] + "..."
            table.add_row(
                record.timestamp.strftime("%H:%M:%S"),
                record.artifact.server or "?",
                record.kind.value,
                str(record.n),
                "yes" if record.artifact.cached else "no",
                Text(result, style=COLORS["success"] if record.succeeded else COLORS["error"]),
                f"{record.server_elapsed_ms:.2f}",
                f"{record.client_elapsed_ms:.2f}",
            )
        self.console.print(table)

    def error(self, error: CodeMigrationError) -> None:
        message = Text()
        message.append("Error: ", style=Style(color=COLORS["error"], bold=True))
        message.append(error.user_message, style=Style(color=COLORS["text"]))
        if error.recovery_hint:
            message.append(f"\n{error.recovery_hint}", style=Style(color=COLORS["muted"]))
        self.console.print(message)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Code Migration client: fetch code from a server and run it locally",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Count from 0 to 10
  code-migration-client count 10

  # Several Fibonacci terms; later requests reuse the cached source
  code-migration-client fibonacci 10 20 30 --show-code

  # Check the server
  code-migration-client --health
        """,
    )
    parser.add_argument("kind", nargs="?", help="Computation: count (nau) or fibonacci (fib)")
    parser.add_argument("n", nargs="*", help="Values of n to request, in order")
    parser.add_argument("--config", "-c", type=Path, help="Path to a YAML or JSON configuration file")
    parser.add_argument("--url", "-u", type=str, help="Server base URL (default: http://localhost:3001)")
    parser.add_argument("--timeout", "-t", type=float, help="Request timeout in seconds (default: 5)")
    parser.add_argument("--no-cache", action="store_true", help="Always ask the server for full source")
    parser.add_argument("--show-code", action="store_true", help="Print the migrated source")
    parser.add_argument("--health", action="store_true", help="Query the server health endpoint and exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable info logging")
    return parser


def main(argv: list[str] | None = None, console: Console | None = None) -> int:
    """Main entry point for the client CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    console = console or Console()

    if args.verbose:
        configure_logging(level=logging.INFO, server_id="client")

    try:
        config = AppConfig.load(args.config).client
        overrides = {}
        if args.url is not None:
            overrides["base_url"] = args.url
        if args.timeout is not None:
            overrides["timeout_seconds"] = args.timeout
        config = dataclasses.replace(config, **overrides)
    except CodeMigrationError as e:
        MigrationDisplay(console).error(e)
        return 2

    display = MigrationDisplay(console, show_code=args.show_code)
    client = MigrationClient.from_config(config, on_step=display.step)

    if args.health:
        try:
            status = client.transport.health()
        except CodeMigrationError as e:
            display.error(e)
            return 1
        console.print(status)
        return 0

    if not args.kind or not args.n:
        parser.error("kind and at least one n are required")

    exit_code = 0
    for raw_n in args.n:
        try:
            record = client.run(args.kind, raw_n, use_cache=not args.no_cache)
        except CodeMigrationError as e:
            display.error(e)
            exit_code = 1
            continue
        source = client.source_cache.get(record.kind, record.artifact.version)
        display.record(record, source)

    if len(client.history):
        display.history(client.history)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
