"""
Taskim: terminal month calendar with ordered per-day tasks.

This package provides a keyboard-driven curses interface for planning tasks
on a month grid. It includes:

- A Sunday-aligned month view with vim-style navigation
- Ordered task lists per day (insert above/below, cut, yank and paste)
- Moving tasks between days
- Bounded undo/redo of every change
- A ':' command line for date jumps and display settings
- YAML configuration of keybindings and colors

Tasks are stored as JSON; see taskim.storage for the file layout.
"""

from .tui import main

__version__ = "0.1.0"
__author__ = "Taskim contributors"
__license__ = "MIT"
__all__ = ['main']
