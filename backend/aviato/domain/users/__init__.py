"""User directory models and persisted records."""
