"""Client for the remote user directory service."""
