"""
Services package initialization.

Business logic for orders and carts, and clients for the remote product and
user services.
"""
