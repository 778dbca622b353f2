"""Domain layer - entities, value objects and domain exceptions."""
