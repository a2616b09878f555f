"""Constants for todoview.

This module centralizes all magic numbers and default values used throughout the application.
"""

# Retention of completed tasks
RETENTION_WINDOW_HOURS = 48

# Task hierarchy
NO_SECTION = "__no_section__"
NO_SECTION_ORDER = -1
MAX_TASK_DEPTH = 64  # Parent chains deeper than this are cut and re-rooted

# Todoist priority range (4 = P1 urgent, 1 = P4 normal)
MIN_PRIORITY = 1
MAX_PRIORITY = 4

# Project colors
DEFAULT_PROJECT_COLOR = "charcoal"

# Upstream fetch
FETCH_TIMEOUT_SECONDS = 30
COMPLETED_ITEMS_LIMIT = 200
SYNC_RESOURCE_TYPES = ["projects", "sections", "items", "labels"]

# Background refresh and liveness stream
REFRESH_INTERVAL_SECONDS = 30
HEARTBEAT_INTERVAL_SECONDS = 1
MAX_HEARTBEATS = 300  # 5 minutes at one heartbeat per second

# Session tokens
SESSION_SUBJECT = "app_user"
