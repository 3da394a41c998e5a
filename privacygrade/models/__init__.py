"""Pydantic models and the mutable per-page record."""
