"""Booking pipeline services.

Import the wiring from ``pikup.services.factory``.
"""
