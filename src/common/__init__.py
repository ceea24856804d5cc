"""Shared helpers for Black Hole."""
