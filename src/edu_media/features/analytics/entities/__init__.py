"""Analytics entities."""

from .content_view import ContentView, ContentAnalytics, ContentViewSummary, ViewerStats

__all__ = ["ContentView", "ContentAnalytics", "ContentViewSummary", "ViewerStats"]
