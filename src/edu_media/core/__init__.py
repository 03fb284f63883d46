"""Core exceptions and value objects."""
