"""Utility helpers."""

from .masking import mask_email, mask_secret

__all__ = ["mask_email", "mask_secret"]
