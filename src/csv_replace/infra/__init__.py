"""Adapters for storage, archives and remote file acquisition."""
