"""Core business logic for the TinyURL service."""

from .shortcode import ShortCodeGenerator
from .service import ShorteningService
from .resolver import Resolver

__all__ = ["ShortCodeGenerator", "ShorteningService", "Resolver"]

__version__ = "1.0.0"
