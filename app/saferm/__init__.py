"""saferm - safe rm replacement with a recoverable quarantine area."""

__version__ = "1.2.1"
