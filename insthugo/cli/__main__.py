"""
Entry point for running the insthugo CLI as a module.

Usage: python -m insthugo.cli [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
