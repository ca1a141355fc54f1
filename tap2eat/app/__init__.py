"""Application entrypoints for tap2eat."""

from .quick_add import QuickAddSession, build_session

__all__ = ["QuickAddSession", "build_session"]
