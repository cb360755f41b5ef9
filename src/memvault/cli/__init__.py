"""Command-line interface for memvault."""
