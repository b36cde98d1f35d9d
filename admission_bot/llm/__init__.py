"""Claude client and system prompt assembly."""
