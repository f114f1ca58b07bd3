"""
CLI Utilities - Shared formatting and helper functions for the CLI

Provides consistent colors, tables and error handling across all CLI commands.
"""

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table


# Console instance for all output
console = Console()

# Color scheme
COLORS = {
    "info": "cyan",
    "success": "green",
    "warning": "yellow",
    "error": "red",
    "highlight": "magenta",
    "muted": "bright_black",
}

CONFIDENCE_COLORS = {
    "high": "green",
    "medium": "yellow",
    "low": "red",
}


# =============================================================================
# Output Functions
# =============================================================================

def print_header(text: str, style: str = "bold cyan"):
    """Print a formatted header"""
    console.print(f"\n{text}", style=style)
    console.print("=" * len(text), style=style)


def print_success(text: str):
    console.print(f"[SUCCESS] {text}", style=COLORS["success"])


def print_error(text: str, exit_code: Optional[int] = None):
    """Print error message and optionally exit"""
    console.print(f"[ERROR] {text}", style=COLORS["error"])
    if exit_code is not None:
        sys.exit(exit_code)


def print_warning(text: str):
    console.print(f"[WARNING] {text}", style=COLORS["warning"])


def print_info(text: str):
    console.print(f"[INFO] {text}", style=COLORS["info"])


def print_panel(content: str, title: Optional[str] = None, style: str = "cyan"):
    """Print content in a panel"""
    console.print(Panel(content, title=title, border_style=style, box=box.ROUNDED))


def print_json(data: Any, title: Optional[str] = None):
    """Print JSON data with syntax highlighting"""
    json_str = json.dumps(data, indent=2, ensure_ascii=False)
    syntax = Syntax(json_str, "json", theme="monokai", line_numbers=False)
    if title:
        console.print(f"\n[bold]{title}[/bold]")
    console.print(syntax)


# =============================================================================
# Table Functions
# =============================================================================

def create_table(
    title: str,
    columns: List[str],
    rows: List[List[Any]],
    show_lines: bool = False,
) -> Table:
    table = Table(
        title=title,
        show_header=True,
        show_lines=show_lines,
        box=box.ROUNDED,
        title_style="bold cyan",
    )

    for col in columns:
        table.add_column(col, style="cyan", no_wrap=False)

    for row in rows:
        table.add_row(*[str(cell) for cell in row])

    return table


def print_table(title: str, columns: List[str], rows: List[List[Any]], show_lines: bool = False):
    console.print(create_table(title, columns, rows, show_lines))


def print_match_results(rows: List[Dict[str, Any]]):
    """Print resolved fields with confidence colored by level"""
    table = Table(title="Resolved Fields", box=box.ROUNDED, title_style="bold cyan")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_column("Confidence")
    table.add_column("Source", style=COLORS["muted"])

    for row in rows:
        color = CONFIDENCE_COLORS.get(row["confidence"], "white")
        table.add_row(
            truncate_text(row["label"], 60),
            str(row["value"]),
            f"[{color}]{row['confidence']}[/{color}]",
            row["source"],
        )
    console.print(table)


# =============================================================================
# Validation Functions
# =============================================================================

def read_text_file(path: str) -> str:
    """Read a UTF-8 text file, or stdin when path is '-'"""
    if path == "-":
        return sys.stdin.read()
    file_path = Path(path)
    if not file_path.is_file():
        print_error(f"File not found: {path}", exit_code=1)
    return file_path.read_text(encoding="utf-8")


# =============================================================================
# Error Handling
# =============================================================================

def handle_error(error: Exception, verbose: bool = False):
    """Handle and display errors consistently"""
    print_error(f"Error: {error}")

    if verbose:
        console.print("\n[dim]Traceback:[/dim]")
        console.print_exception()
    else:
        console.print("[dim]Use --verbose for full traceback[/dim]")


def truncate_text(text: str, max_length: int = 50) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length - 3] + "..."


# =============================================================================
# CLI State Management
# =============================================================================

class CLIState:
    """Shared state for CLI commands"""

    def __init__(self):
        self.verbose = False
        self.as_json = False

    def set_verbose(self, verbose: bool):
        self.verbose = verbose

    def set_json(self, as_json: bool):
        self.as_json = as_json


# Global CLI state
cli_state = CLIState()
