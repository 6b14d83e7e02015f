"""Configuration, policy source, diagnostics and runtime helpers for a cloud asset inventory tool."""

__version__ = "0.1.0"