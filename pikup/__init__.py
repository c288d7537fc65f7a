"""Pikup booking and fulfillment core.

Prices a pickup, quotes item coverage, takes payment, stores the booking
and follows it until delivery.
"""

__version__ = "1.0.0"
