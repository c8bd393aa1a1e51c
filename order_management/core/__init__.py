"""
Core package for shared utilities.

Settings, structured logging, the error taxonomy and the per-key locks used
across the order management service.
"""
