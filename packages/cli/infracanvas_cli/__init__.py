"""Command line front end for infracanvas."""

__version__ = "0.3.0"
