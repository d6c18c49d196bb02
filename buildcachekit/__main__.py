"""
Entry point for running buildcachekit as a module.

Usage: python -m buildcachekit [options]
"""

from buildcachekit.cli.parser import main

if __name__ == "__main__":
    main()
