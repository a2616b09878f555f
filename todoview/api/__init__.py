"""HTTP API for todoview."""
