"""Infrastructure layer: HTTP transport, provider connectors, auth and CLI."""
