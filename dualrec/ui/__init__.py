"""Terminal presentation helpers."""

from .report_view import render_report, render_segment_event

__all__ = ["render_report", "render_segment_event"]
