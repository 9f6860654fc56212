"""User accounts and their lifecycle events."""
