"""Version information for edu-media-commons."""

__version__ = "0.1.0"
