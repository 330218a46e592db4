from datetime import timedelta
from typing import Optional

from rich.console import Group
from rich.live import Live
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from mesh_brute.models.search import Confidence, SearchProgress, SearchResult
from mesh_brute.state_queue import SingleSlotQueue
from mesh_brute.utils import format_hex_dump


COLORS = {
    "label": "bold cyan",
    "value": "white",
    "bar": "spring_green2",
    "key": "bold yellow",
    "payload": "green",
    "hex": "dim",
    "confidence": {
        Confidence.HIGH: "bold green",
        Confidence.MEDIUM: "yellow",
        Confidence.LOW: "red",
    },
}


def format_eta(progress: SearchProgress) -> str:
    """Remaining time at the current rate, or ? before the rate is known."""
    if progress.keys_per_second <= 0:
        return "?"
    remaining = (progress.total - progress.current) / progress.keys_per_second
    return str(timedelta(seconds=round(remaining)))


def render(progress: Optional[SearchProgress], title: str = "Key Search"):
    """Render the latest search progress snapshot."""
    if progress is None:
        return Panel("Waiting for first chunk…", title=title, border_style="dim")

    table = Table.grid(padding=(0, 2))
    table.add_column(justify="right", style=COLORS["label"])
    table.add_column(style=COLORS["value"])
    table.add_row("Tried", f"{progress.current:,} / {progress.total:,}  ({progress.percent:.2f}%)")
    table.add_row("Rate", f"{progress.keys_per_second:,} keys/s")
    table.add_row("ETA", format_eta(progress))

    bar = ProgressBar(total=progress.total, completed=progress.current, complete_style=COLORS["bar"])
    return Panel(Group(table, bar), title=title, border_style="blue")


def render_result(result: SearchResult):
    """Render a found key, the decoded fields and a hex dump of the plaintext."""
    confidence_style = COLORS["confidence"][result.confidence]

    table = Table.grid(padding=(0, 2))
    table.add_column(justify="right", style=COLORS["label"])
    table.add_column()
    table.add_row("Key", Text(result.key_hex, style=COLORS["key"]))
    table.add_row("Confidence", Text(str(result.confidence), style=confidence_style))
    if result.portnum is not None:
        table.add_row("Port", f"{result.portnum_label} ({result.portnum})")
    if isinstance(result.payload, str):
        table.add_row("Text", Text(result.payload, style=COLORS["payload"]))
    elif result.payload is not None:
        table.add_row("Payload", Text(result.payload.hex(" "), style=COLORS["payload"]))

    dump = Text("\n".join(format_hex_dump(result.decrypted)), style=COLORS["hex"])
    return Panel(Group(table, Text(""), dump), title="Key Found", border_style=confidence_style)


def ui_loop(progress_queue: SingleSlotQueue[SearchProgress], title: str = "Key Search") -> None:
    """Redraw the progress panel until the queue is closed."""
    with Live(render(None, title), refresh_per_second=10, screen=False) as live:
        while True:
            progress = progress_queue.get()
            if progress is None:
                break
            live.update(render(progress, title))
