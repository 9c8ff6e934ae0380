"""Console observer - renders a monitor's output stream in the terminal."""

import asyncio
import json
import logging
import sys
import threading
from collections.abc import Callable
from contextlib import suppress
from datetime import datetime
from typing import Any, TextIO

import websockets
from rich.console import Console

from monitorhub.domain import (
    MAX_CHARACTERS,
    ClientCommand,
    Line,
    LineBuffer,
    MiddlewareCommand,
)

logger = logging.getLogger(__name__)

TIMESTAMP_SEPARATOR = " -> "


def format_timestamp(ts: datetime) -> str:
    """Format as ``H:MM:SS.mmm``."""
    return f"{ts.hour}:{ts.minute:02d}:{ts.second:02d}.{ts.microsecond // 1000:03d}"


class MonitorConsole:
    """Turns observer frames into printable lines.

    Output batches are merged into a bounded line buffer; only closed
    lines are printed, so a line split across batches prints once.
    """

    def __init__(
        self,
        *,
        show_timestamp: bool = False,
        line_ending: str = "\n",
        max_characters: int = MAX_CHARACTERS,
        out: TextIO | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.show_timestamp = show_timestamp
        self.line_ending = line_ending
        self.buffer = LineBuffer(max_characters=max_characters, clock=clock)
        self.settings: dict[str, Any] = {}
        self._out = out or sys.stdout

    def format_line(self, line: Line) -> str:
        if self.show_timestamp:
            return f"{format_timestamp(line.timestamp)}{TIMESTAMP_SEPARATOR}{line.text}"
        return line.text

    def handle_frame(self, raw: str) -> list[str]:
        """Handle one frame from the session.

        Returns:
            Rendered lines written to the output.
        """
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Dropping malformed frame")
            return []

        if isinstance(message, list):
            fragments = [f for f in message if isinstance(f, str)]
            rendered = [self.format_line(line) for line in self.buffer.add_batch(fragments)]
            for text in rendered:
                self._out.write(text)
            self._out.flush()
            return rendered

        if (
            isinstance(message, dict)
            and message.get("command") == MiddlewareCommand.ON_SETTINGS_DID_CHANGE.value
            and isinstance(message.get("data"), dict)
        ):
            self._merge_settings(message["data"])
            return []

        logger.debug("Ignoring frame %r", raw[:100])
        return []

    def encode_message(self, text: str) -> str:
        """Encode user input as a SEND_MESSAGE command."""
        return json.dumps(
            {"command": ClientCommand.SEND_MESSAGE.value, "data": text + self.line_ending}
        )

    def encode_settings(self, update: dict[str, Any]) -> str:
        return json.dumps({"command": ClientCommand.CHANGE_SETTINGS.value, "data": update})

    def _merge_settings(self, data: dict[str, Any]) -> None:
        for key, value in data.items():
            if isinstance(value, dict) and isinstance(self.settings.get(key), dict):
                self.settings[key] = {**self.settings[key], **value}
            else:
                self.settings[key] = value


async def _receive(ws, console: MonitorConsole) -> None:
    async for raw in ws:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        console.handle_frame(raw)


def _read_stdin(loop: asyncio.AbstractEventLoop, queue: asyncio.Queue) -> None:
    with suppress(RuntimeError):  # loop closed on exit
        for text in sys.stdin:
            loop.call_soon_threadsafe(queue.put_nowait, text)
        loop.call_soon_threadsafe(queue.put_nowait, "")


async def _forward_stdin(ws, console: MonitorConsole) -> None:
    # Daemon thread so a pending readline never blocks exit
    queue: asyncio.Queue[str] = asyncio.Queue()
    loop = asyncio.get_running_loop()
    threading.Thread(target=_read_stdin, args=(loop, queue), daemon=True).start()
    while True:
        text = await queue.get()
        if not text:
            return
        await ws.send(console.encode_message(text.rstrip("\r\n")))


async def run_console(
    url: str,
    *,
    show_timestamp: bool = False,
    line_ending: str = "\n",
    max_characters: int = MAX_CHARACTERS,
) -> int:
    """Observe a monitor until the session or stdin closes.

    Returns:
        Process exit code.
    """
    status = Console(stderr=True)
    console = MonitorConsole(
        show_timestamp=show_timestamp,
        line_ending=line_ending,
        max_characters=max_characters,
    )

    try:
        async with websockets.connect(url) as ws:
            status.print(f"[green]●[/green] Connected to [bold cyan]{url}[/bold cyan]")
            tasks = {
                asyncio.create_task(_receive(ws, console)),
                asyncio.create_task(_forward_stdin(ws, console)),
            }
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            for task in pending:
                task.cancel()
            for task in done:
                task.result()
    except websockets.exceptions.ConnectionClosedError as e:
        status.print(f"[yellow]●[/yellow] Session closed: {e}")
        return 1
    except OSError as e:
        status.print(f"[red]●[/red] Cannot connect to {url}: {e}")
        return 1

    status.print("[dim]Session closed[/dim]")
    return 0
