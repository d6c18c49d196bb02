"""
Entry point for running the buildcachekit CLI as a module.

Usage: python -m buildcachekit.cli [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
