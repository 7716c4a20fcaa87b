"""Middleware for the TinyURL web app."""

from .logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
