"""Configuration - settings and dependency container."""
