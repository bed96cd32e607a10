"""Embedded tests in documentation strings: locate, extract, evaluate, report."""

__all__ = [
    "unescape",
    "locator",
    "extractor",
    "check",
    "session",
    "engine",
    "model",
]
