"""Interactive client for a remote command-execution server."""

__version__ = "0.1.0"
