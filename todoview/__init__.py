"""todoview: read-only, password-gated view of a Todoist account."""

__version__ = "0.1.0"
