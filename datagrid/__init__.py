"""Headless spreadsheet-like grid engine.

Typed cells in named columns and ordered rows, rule-based validation,
cursor navigation, tab-delimited clipboard interchange and type-aware sorting.
"""

__version__ = "0.1.0"
