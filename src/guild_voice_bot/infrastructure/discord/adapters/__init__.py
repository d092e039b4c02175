"""Adapters implementing application ports on top of discord.py."""
