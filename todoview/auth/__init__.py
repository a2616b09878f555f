"""Authentication helpers for todoview."""
