"""
Entry point for running csftracker as a module.

Usage:
    python -m csftracker [command] [options]

This allows csftracker to be executed directly as a Python module,
which is useful for development and testing without installing
the package.
"""

from csftracker.cli import main

if __name__ == "__main__":
    main()
