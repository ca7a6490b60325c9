"""Core infrastructure: configuration, logging, exceptions and the hook emitter."""
