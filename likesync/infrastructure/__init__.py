"""Infrastructure layer: service connectors and the command line interface."""
