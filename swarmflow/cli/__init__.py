"""Command-line interface for swarmflow."""
