"""Streaming search/replace engine."""
