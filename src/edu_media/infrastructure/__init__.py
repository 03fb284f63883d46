"""Adapters for the collaborators declared in ``edu_media.protocols``."""
