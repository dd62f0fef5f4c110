"""Ensure third-party GitHub Actions are pinned to immutable releases."""

__version__ = "0.1.0"
