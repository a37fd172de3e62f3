"""Filesystem helpers for working, published and quarantined media."""
