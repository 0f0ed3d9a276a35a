"""
frugen Command-Line Interface
=============================

This package provides the frugen command-line tool:

- **create**: build a FRU image from options or a JSON template
- **info**: print the contents of a FRU image
- **validate**: check a FRU image for format errors

The tool is a Click-based CLI application with comprehensive help and
error reporting.
"""

__all__ = ["frugen"]
