"""Recommendation request models."""

from .requests import CreateRecommendationRequest

__all__ = ["CreateRecommendationRequest"]
