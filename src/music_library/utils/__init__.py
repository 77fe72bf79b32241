"""Utility functions for the music library."""

from music_library.utils.security import SecurityUtils

__all__ = [
    "SecurityUtils",
]
