"""Evaluator helper modules for the Brisk runtime."""

__all__ = [
    "helpers",
    "expr",
    "bind",
    "control",
    "blocks",
]
