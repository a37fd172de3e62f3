"""Quarantine of published images."""
