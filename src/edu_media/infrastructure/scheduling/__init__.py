"""Job scheduler adapters."""

from .inline_scheduler import InlineJobScheduler

__all__ = ["InlineJobScheduler"]
