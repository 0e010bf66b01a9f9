"""Lenslearn tunnel reverse proxy."""
