"""Application wiring: lifespan and dependency providers."""
