"""Presentation layer - terminal front-end."""
