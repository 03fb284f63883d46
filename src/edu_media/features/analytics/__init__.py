"""Analytics feature: content view tracking and per-content reports."""

from .entities import ContentView, ContentAnalytics, ContentViewSummary, ViewerStats

__all__ = ["ContentView", "ContentAnalytics", "ContentViewSummary", "ViewerStats"]
