"""Cross-cutting helpers shared by the API and the engine."""
