"""Core utilities shared across binstage: logging, errors, time."""
