"""
Entry point for running ndkharness CLI as a module.

Usage: python -m ndkharness [command] [options]
"""

from ndkharness.cli.parser import main

if __name__ == "__main__":
    main()
