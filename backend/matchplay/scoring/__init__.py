"""Scoring engines."""

from . import match_play

__all__ = ["match_play"]
