"""Rich console output for the export CLI

Status lines go to stdout; failures go to stderr so a redirected export
log still shows why the run stopped.
"""

from rich.console import Console
from rich.text import Text

console = Console()
error_console = Console(stderr=True)

def _status(target: Console, marker: str, style: str, message: str) -> None:
    target.print(Text.assemble((f"{marker} ", f"bold {style}"), (message, style)))

def print_error(message: str) -> None:
    """Report why an export stopped."""
    _status(error_console, "✗", "red", message)

def print_success(message: str) -> None:
    """Report the written output file."""
    _status(console, "✓", "green", message)

def print_info(message: str) -> None:
    _status(console, "•", "blue", message)

def print_header(title: str) -> None:
    """Full-width rule with the tool name and version."""
    console.rule(Text(title, style="bold"), style="blue")

def print_progress(phase: str, ratio: float) -> None:
    """Print one export progress step as ``[ 42%] phase``."""
    console.print(Text.assemble((f"[{ratio:4.0%}] ", "cyan"), phase))
