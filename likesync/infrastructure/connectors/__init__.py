"""Connectors for the remote services likesync talks to."""
