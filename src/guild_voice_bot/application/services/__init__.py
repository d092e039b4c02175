"""Application services - registry, session resolver, and playback engine."""
