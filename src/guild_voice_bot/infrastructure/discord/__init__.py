"""Discord gateway integration - bot, adapters, and cogs."""
