"""Display utilities for the startup screen."""

import sys

from rich.align import Align
from rich.console import Console
from rich.table import Table

from monitorhub import __version__
from monitorhub.config import Config

# Force UTF-8 for Windows console
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")

console = Console()

LOGO = r"""
█▀▄▀█ █▀█ █▄ █ █ ▀█▀ █▀█ █▀█   █ █ █ █ █▄▄
█ ▀ █ █▄█ █ ▀█ █  █  █▄█ █▀▄   █▀█ █▄█ █▄█
""".strip()


def _apply_gradient(lines: list[str], colors: list[str]) -> list[str]:
    """Apply color gradient to text lines."""
    return [
        f"[{colors[min(i, len(colors) - 1)]}]{line}[/{colors[min(i, len(colors) - 1)]}]"
        for i, line in enumerate(lines)
    ]


def server_url(host: str, port: int, scheme: str = "http") -> str:
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    return f"{scheme}://{host}:{port}"


def display_startup_screen(config: Config, config_path: str | None = None) -> None:
    """Display the startup screen with endpoints and backend summary."""
    host, port = config.server.host, config.server.port
    url = server_url(host, port)

    logo_colored = _apply_gradient(LOGO.split("\n"), ["bold bright_cyan", "cyan"])

    if config.daemon.backend == "grpc":
        backend = f"[green]●[/green] DAEMON [bold]{config.daemon.address}[/bold]"
    else:
        backend = "[yellow]●[/yellow] LOOPBACK MODE - output echoes what is sent"

    lines = [
        *logo_colored,
        f"[dim]v{__version__}[/dim]",
        "",
        backend,
        f"[bold cyan]{url}/api/monitors[/bold cyan]",
        f"[bold cyan]{server_url(host, port, 'ws')}/ws/monitors/<id>[/bold cyan]",
    ]
    if config_path:
        lines.append(f"[dim]{config_path}[/dim]")
    lines.append("[dim]Ctrl+C to stop[/dim]")

    table = Table.grid(padding=(0, 4))
    table.add_column(justify="left", vertical="middle")
    table.add_row("\n".join(lines))

    console.print()
    console.print(Align.center(table))
    console.print()
