"""Snapshot cache persistence for todoview."""
