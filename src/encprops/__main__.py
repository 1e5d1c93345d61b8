"""
Entry point for running encprops as a module.

Usage:
    python -m encprops [--in FILE] [--out FILE] [options]

This allows encprops to be executed directly as a Python module,
which is useful for development and testing without installing
the package.
"""

from encprops.cli import main

if __name__ == "__main__":
    main()
