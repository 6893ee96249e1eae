"""Shared helpers for webterminal."""
