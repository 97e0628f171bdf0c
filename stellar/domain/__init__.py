"""Pure domain layer: entities, matching rules and error types."""
