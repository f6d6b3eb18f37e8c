#!/usr/bin/env python3
"""
Run taskim straight from a source checkout: ./taskim-tui.py

Once installed, the `taskim` console script does the same thing.
"""

from taskim import main

if __name__ == "__main__":
    main()
