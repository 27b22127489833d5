"""Tournament notification service."""
