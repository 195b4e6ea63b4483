"""Command line host for the ZIA provider."""
