"""HTTP API for the sync controller."""
