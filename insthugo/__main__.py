"""
Entry point for running insthugo as a module.

Usage: python -m insthugo [options]
"""

from insthugo.cli.parser import main

if __name__ == "__main__":
    main()
