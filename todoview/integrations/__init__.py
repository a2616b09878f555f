"""Upstream integrations for todoview."""
