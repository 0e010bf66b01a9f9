"""Lenslearn content gateway."""
