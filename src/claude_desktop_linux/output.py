"""
Console output shared by every pipeline stage.
"""

from __future__ import annotations

from rich.console import Console

console = Console(highlight=False)


def section(title: str) -> None:
    """Print a stage banner."""
    console.print()
    console.print(f"[bold cyan]--- {title} ---[/bold cyan]")


def step(message: str) -> None:
    console.print(message)


def success(message: str) -> None:
    console.print(f"  [green]✓[/green] {message}")


def warning(message: str) -> None:
    console.print(f"  [yellow]⚠[/yellow] {message}")


def error(message: str) -> None:
    console.print(f"[red]Error:[/red] {message}")
