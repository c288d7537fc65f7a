"""Pricing client."""

from .client import ALL_VEHICLE_TYPES, PricingClient, PricingQuote

__all__ = ["ALL_VEHICLE_TYPES", "PricingClient", "PricingQuote"]
