"""Subcommand implementations for the safer CLI."""
