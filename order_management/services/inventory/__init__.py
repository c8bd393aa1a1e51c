"""Client for the remote product inventory service."""
