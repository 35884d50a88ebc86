"""Command-line tools for inspecting and building filter queries."""

from __future__ import annotations

from .main import cli

__all__ = ["cli"]
