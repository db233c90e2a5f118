"""
insthugo CLI module.

This module provides the command-line interface for insthugo.
"""

from .parser import CLI, main

__all__ = ["CLI", "main"]
