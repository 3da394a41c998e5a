"""Shared helpers: logging, errors, URL parsing and grade presentation."""
