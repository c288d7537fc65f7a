"""Pikup backend HTTP client."""

from .client import ApiResponse, PikupApiClient

__all__ = ["ApiResponse", "PikupApiClient"]
