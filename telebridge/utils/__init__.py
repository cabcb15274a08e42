"""Utility helpers."""

from .helpers import is_retryable_error, preview, split_into_chunks

__all__ = [
    "is_retryable_error",
    "preview",
    "split_into_chunks",
]
