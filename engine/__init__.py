"""Core engine package for Stacked."""

__all__ = [
    "cards",
    "deck",
    "capture",
    "actions",
    "state",
    "turns",
    "rules_schema",
    "service",
]
