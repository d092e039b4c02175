"""Shared helpers for logging and chat formatting."""
