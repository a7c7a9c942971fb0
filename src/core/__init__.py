"""
Core module for cross-cutting concerns.

This module provides:
- Structured logging configuration
- Request tracing middleware
- Small text utilities shared by the stylist components
"""

from core.logging import bind_context, clear_context, configure_logging, get_logger
from core.utils import clean_terms, contains_word, first_non_empty, is_remote_image_ref

__all__ = [
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "clean_terms",
    "contains_word",
    "first_non_empty",
    "is_remote_image_ref",
]
