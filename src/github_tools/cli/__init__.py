"""Command-line interface for the GitHub tools server."""
