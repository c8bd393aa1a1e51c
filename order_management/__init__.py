"""Order management API for retailer and manufacturer orders."""

__version__ = "1.0.0"
