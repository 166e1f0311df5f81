"""Pictospeak client: progressive picture-description feedback."""

__version__ = "0.4.0"
