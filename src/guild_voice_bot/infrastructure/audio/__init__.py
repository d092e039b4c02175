"""Audio source resolution."""
