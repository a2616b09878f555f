"""Background services for todoview."""
