"""
Entry point for running phplogtail as a Python module.

This module enables the package to be executed directly via:
    python -m phplogtail <command>
"""

from .cli import main

if __name__ == "__main__":
    main()
