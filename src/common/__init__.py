"""Shared infrastructure: configuration, logging and IPC."""
