"""Whole-text rewrite stages of the litescript pipeline."""

__all__ = [
    "common",
    "variables",
    "blocks",
    "rules",
    "sugar",
    "log",
    "loops",
]
