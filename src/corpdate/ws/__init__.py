"""WebSocket delivery of per-user events."""
