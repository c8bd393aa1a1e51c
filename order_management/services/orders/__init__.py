"""Order lifecycle: creation, updates, search and accept/reject decisions."""
