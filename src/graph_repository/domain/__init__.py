"""Domain layer for declarative repositories."""
