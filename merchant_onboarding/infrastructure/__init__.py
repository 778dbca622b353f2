"""Infrastructure layer - adapters for configuration, storage and identity."""
