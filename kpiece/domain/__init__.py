"""Domain layer: rich models and the exception template registry."""
