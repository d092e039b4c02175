"""Application layer - services coordinating guild voice sessions."""
