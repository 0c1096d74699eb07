"""Infrastructure adapters: database, realtime delivery and email."""
