"""Sandbox gate for model-chosen filesystem, shell and network actions."""

__version__ = "0.1.0"
