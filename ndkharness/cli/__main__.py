"""
Entry point for running ndkharness CLI as a module.

Usage: python -m ndkharness.cli [command] [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
