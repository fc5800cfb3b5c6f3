"""Operational entry points (scheduler jobs, deployment hooks)."""
