"""Core infrastructure: paths, settings, cancellation and locking."""
