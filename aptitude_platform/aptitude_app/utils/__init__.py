"""Utility helpers (auth tokens)."""

from .security import generate_access_token

__all__ = ["generate_access_token"]
