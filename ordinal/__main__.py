"""
Ordinal Module Entry Point
===========================

Allows running the Ordinal CLI via: python -m ordinal
"""

from ordinal.cli import main

if __name__ == "__main__":
    main()
