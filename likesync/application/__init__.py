"""Application layer: sync services and use cases."""
