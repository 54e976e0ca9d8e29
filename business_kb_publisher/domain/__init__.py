"""Domain models and value validation."""
