"""Gateway HTTP transport, auth, and error types."""
