"""Retailer shopping cart entries."""
