"""AI provider ports."""
