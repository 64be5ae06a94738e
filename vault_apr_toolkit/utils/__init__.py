"""Formatting helpers for the CLI."""
