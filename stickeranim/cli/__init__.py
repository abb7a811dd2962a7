"""Command-line interface for stickeranim."""
