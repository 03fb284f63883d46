"""Recommendations: professionals point people at content by email."""

from .entities import ContentRecommendation, RecommendedContent

__all__ = ["ContentRecommendation", "RecommendedContent"]
