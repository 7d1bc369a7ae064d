"""REST, WebSocket and frame codec."""
