"""User-facing entry points (HTTP and command line)."""
