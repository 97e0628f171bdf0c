"""Application layer orchestrating connectors and domain rules."""
