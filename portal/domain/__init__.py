"""Domain layer for the communication engine."""
