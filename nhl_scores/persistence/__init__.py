"""Persistence helpers for teams and games."""
