"""
CLI - Command-Line Interface for AutoApply

Provides commands for resolving form fields and generating application documents.
"""

from .main import cli, main

__all__ = ["cli", "main"]
