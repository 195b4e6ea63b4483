"""Zscaler Internet Access configuration as declarative resources."""

__version__ = "0.1.0"
