"""Per-pull-request preview environments on Railway."""

__version__ = "1.0.0"
