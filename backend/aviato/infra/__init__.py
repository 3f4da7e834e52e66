"""Infrastructure adapters: clock, redis, persistence."""
