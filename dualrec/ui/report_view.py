"""Rich rendering of session reports and live segment events."""

from datetime import datetime
from typing import Any, Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models.events import SegmentEvent


def _format_mb(size_bytes: int) -> str:
    return f"{size_bytes / (1024 * 1024):.2f} MB"


def _format_time(timestamp: Optional[float]) -> str:
    if timestamp is None:
        return "-"
    return datetime.fromtimestamp(timestamp).strftime("%H:%M:%S")


def build_report_table(report: Dict[str, Any]) -> Table:
    """Build a per-segment table from an aggregate report dict."""
    table = Table(title=f"Session {report.get('session_id')}", expand=True)
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Segment")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Duration", justify="right")
    table.add_column("Input", justify="right")
    table.add_column("Output", justify="right")
    table.add_column("System audio", justify="center")

    for segment in report.get("segments", []):
        table.add_row(
            str(segment["index"]),
            segment["segment_id"],
            _format_time(segment.get("start_time")),
            _format_time(segment.get("end_time")),
            f"{segment['duration']:.1f}s",
            _format_mb(segment["input_size"]),
            _format_mb(segment["output_size"]),
            "✅" if segment["has_output_audio"] else "—",
        )
    return table


def render_report(report: Dict[str, Any], console: Optional[Console] = None) -> None:
    """Print a stop() report, or the error reply when recording failed."""
    console = console or Console()

    if not report.get("success"):
        console.print(Panel(Text(str(report.get("error", "Unknown error")), style="bold red"),
                            title="Recording failed"))
        return

    console.print(build_report_table(report))
    summary = Text()
    summary.append(f"{report['total_segments']} segments, ", style="bold")
    summary.append(f"{report['total_duration']:.1f}s recorded, ")
    summary.append(f"{_format_mb(report['total_input_size'])} input, ")
    summary.append(f"{_format_mb(report['total_output_size'])} output")
    console.print(Panel(summary, title="Summary"))


def render_segment_event(event: SegmentEvent, console: Optional[Console] = None) -> None:
    console = console or Console()
    if event.event_type == "started":
        marker = "🎙️" if event.has_output_audio else "🎙️ (mic only)"
        console.print(f"[green]{marker} segment {event.index + 1} started[/green] {event.segment_id}")
    elif event.event_type == "closed":
        console.print(f"[yellow]💾 segment {event.index + 1} saved[/yellow] "
                      f"{event.metadata.get('duration', 0.0):.1f}s")
