"""Shared types, constants, logging and services."""
