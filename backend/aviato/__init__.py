"""Aviato availability and conversation rules engine."""
