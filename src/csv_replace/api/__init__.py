"""HTTP API composition."""
