"""Infrastructure layer: settings persistence and HTTP transport."""
