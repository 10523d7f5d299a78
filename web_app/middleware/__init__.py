"""Middleware for linkblog web app."""

from .logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
