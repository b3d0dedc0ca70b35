"""
CLI utility functions for the rule codec.

Contains:
- The shared rich console
- Display utilities (print_header, print_error)
"""

from rich.console import Console
from rich.panel import Panel

from ..config.config import get_config


# Global Console
console = Console()


def apply_output_config() -> None:
    """Apply RCL_NO_COLOR to the shared console."""
    if get_config().output.no_color:
        console.no_color = True


def print_header(title: str, subtitle: str = "") -> None:
    """Print a command header panel."""
    body = f"[bold cyan]{title}[/]"
    if subtitle:
        body += f"\n[dim]{subtitle}[/]"
    console.print(Panel(body, border_style="cyan"))


def print_error(message: str, hint: str = "") -> None:
    """Print an error line with an optional dim hint below it."""
    console.print(f"[bold red]FAIL {message}[/]")
    if hint:
        console.print(f"[dim]{hint}[/]")
