"""
BuzyBees Booking Engine
Booking composition and fulfillment for a two-sided service marketplace
"""

__version__ = "0.1.0"
