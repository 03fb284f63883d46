"""Recommendation entities."""

from .recommendation import ContentRecommendation, RecommendedContent

__all__ = ["ContentRecommendation", "RecommendedContent"]
