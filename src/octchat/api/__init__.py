"""HTTP and WebSocket API for the Octchat relay."""
