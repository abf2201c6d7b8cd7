"""Per-frame visual behaviour analysis for group-discussion practice."""

__version__ = "0.1.0"
