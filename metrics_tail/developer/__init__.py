"""Developer tools for metrics_tail."""

from .replay import load_trace_items, main, replay

__all__ = ["load_trace_items", "main", "replay"]
